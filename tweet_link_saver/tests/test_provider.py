import json
import pytest
import requests
from unittest.mock import patch

from tweet_link_saver.core.errors import ProviderError, ProviderResponseError, ProviderTimeout
from tweet_link_saver.core.provider import TwitterApiClient
from .helpers import make_response


@pytest.fixture
def api():
    return TwitterApiClient(base_url='https://api.example.test', timeout=5, max_thread_pages=8)


def thread_page(tweets, has_next=False, cursor='', **extra):
    payload = {'tweets': tweets, 'has_next_page': has_next, 'next_cursor': cursor}
    payload.update(extra)
    return make_response(payload)


def test_forward_sends_key_and_timeout(api):
    """Provider requests carry the API key header and the configured timeout"""
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response({'ok': 1})) as mock_get:
        response, payload = api.forward('/oapi/my/info', 'secret-key')

    assert payload == {'ok': 1}
    args, kwargs = mock_get.call_args
    assert args[0] == 'https://api.example.test/oapi/my/info'
    assert kwargs['headers']['X-API-Key'] == 'secret-key'
    assert kwargs['headers']['Accept'] == 'application/json'
    assert kwargs['timeout'] == 5


def test_forward_non_json_body_decodes_to_empty_dict(api):
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response(ValueError('no json'), 500)):
        response, payload = api.forward('/x', 'key')
    assert payload == {}
    assert response.status_code == 500


def test_verify_key_reports_credits(api):
    with patch('tweet_link_saver.core.provider.requests.get',
               return_value=make_response({'recharge_credits': 1200})):
        assert api.verify_key('key') == {'credits': 1200}


def test_verify_key_without_credits(api):
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response({})):
        assert api.verify_key('key') == {'credits': None}


def test_verify_key_rejected_uses_provider_message(api):
    with patch('tweet_link_saver.core.provider.requests.get',
               return_value=make_response({'message': 'Invalid API key'}, 401)):
        with pytest.raises(ProviderResponseError) as exc:
            api.verify_key('bad')
    assert exc.value.status_code == 401
    assert exc.value.message == 'Invalid API key'


def test_verify_key_timeout(api):
    with patch('tweet_link_saver.core.provider.requests.get', side_effect=requests.exceptions.Timeout()):
        with pytest.raises(ProviderTimeout) as exc:
            api.verify_key('key')
    assert exc.value.status_code == 502
    assert exc.value.message == 'twitterapi.io verification timed out.'


def test_connection_error_is_provider_error(api):
    with patch('tweet_link_saver.core.provider.requests.get',
               side_effect=requests.exceptions.ConnectionError('boom')):
        with pytest.raises(ProviderError) as exc:
            api.get_tweet('key', '12345')
    assert exc.value.message == 'Unexpected error fetching tweet.'


def test_get_tweet_prefers_exact_id(api):
    payload = {'status': 'success', 'tweets': [{'id': '111'}, {'id': '222', 'text': 'match'}]}
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response(payload)) as mock_get:
        tweet = api.get_tweet('key', '222')

    assert tweet['text'] == 'match'
    assert mock_get.call_args[1]['params'] == {'tweet_ids': '222'}


def test_get_tweet_falls_back_to_first(api):
    payload = {'status': 'success', 'tweets': [{'id': '111'}]}
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response(payload)):
        assert api.get_tweet('key', '999')['id'] == '111'


def test_get_tweet_empty_list_is_not_found(api):
    payload = {'status': 'success', 'tweets': []}
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response(payload)):
        with pytest.raises(ProviderResponseError) as exc:
            api.get_tweet('key', '999')
    assert exc.value.status_code == 404
    assert exc.value.message == 'Tweet not found.'


@pytest.mark.parametrize('payload', [
    {'status': 'error', 'tweets': []},
    {'status': 'success'},
    {'status': 'success', 'tweets': 'nope'},
])
def test_get_tweet_unexpected_payload(api, payload):
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response(payload)):
        with pytest.raises(ProviderResponseError) as exc:
            api.get_tweet('key', '999')
    assert exc.value.status_code == 502
    assert exc.value.message == 'Unexpected response from twitterapi.io.'


def test_get_tweet_error_status(api):
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response({}, 429)):
        with pytest.raises(ProviderResponseError) as exc:
            api.get_tweet('key', '999')
    assert exc.value.status_code == 429
    assert exc.value.message == 'Unable to fetch tweet.'


def test_get_thread_single_page(api):
    page = thread_page([{'id': '1'}, {'id': '2'}], tweet={'id': 'root-1'})
    with patch('tweet_link_saver.core.provider.requests.get', return_value=page) as mock_get:
        result = api.get_thread('key', '12345')

    assert [t['id'] for t in result['tweets']] == ['1', '2']
    assert result['rootTweetId'] == 'root-1'
    assert result['hasNextPage'] is False
    assert result['nextCursor'] is None
    assert isinstance(result['fetchedAt'], int)
    assert mock_get.call_args[1]['params'] == {'tweetId': '12345'}


def test_get_thread_follows_cursor_and_dedupes(api):
    """Pages are merged in order and repeated ids are dropped"""
    pages = [
        thread_page([{'id': '1'}, {'id': '2'}], has_next=True, cursor='c1'),
        thread_page([{'id': '2'}, {'tweet_id': '3'}, {'text': 'no id'}], has_next=True, cursor='c2'),
        thread_page([{'tweetId': '4'}, {'id': '1'}], has_next=False, cursor=''),
    ]
    with patch('tweet_link_saver.core.provider.requests.get', side_effect=pages) as mock_get:
        result = api.get_thread('key', '12345')

    ids = [t.get('id') or t.get('tweet_id') or t.get('tweetId') for t in result['tweets']]
    assert ids == ['1', '2', '3', '4']
    assert mock_get.call_count == 3
    assert mock_get.call_args_list[1][1]['params'] == {'tweetId': '12345', 'cursor': 'c1'}
    assert mock_get.call_args_list[2][1]['params'] == {'tweetId': '12345', 'cursor': 'c2'}
    assert result['rootTweetId'] == '12345'


def test_get_thread_stops_at_page_cap(api):
    """At most eight pages are requested even if the provider keeps paging"""
    pages = [thread_page([{'id': str(n)}], has_next=True, cursor=f"c{n}") for n in range(20)]
    with patch('tweet_link_saver.core.provider.requests.get', side_effect=pages) as mock_get:
        result = api.get_thread('key', '12345')

    assert mock_get.call_count == 8
    assert len(result['tweets']) == 8
    assert result['hasNextPage'] is True
    assert result['nextCursor'] == 'c7'


def test_get_thread_stops_without_cursor(api):
    pages = [thread_page([{'id': '1'}], has_next=True, cursor='')]
    with patch('tweet_link_saver.core.provider.requests.get', side_effect=pages) as mock_get:
        result = api.get_thread('key', '12345')

    assert mock_get.call_count == 1
    assert result['hasNextPage'] is False
    assert result['nextCursor'] == ''


def test_get_thread_camel_case_fields_and_replies(api):
    pages = [
        make_response({'replies': [{'id': '9'}], 'hasNextPage': True, 'nextCursor': 'n1', 'originalTweetId': 'orig'}),
        make_response({'replies': [{'id': '10'}], 'hasNextPage': False}),
    ]
    with patch('tweet_link_saver.core.provider.requests.get', side_effect=pages):
        result = api.get_thread('key', '12345')

    assert [t['id'] for t in result['tweets']] == ['9', '10']
    assert result['rootTweetId'] == 'orig'


def test_get_thread_starts_from_given_cursor(api):
    with patch('tweet_link_saver.core.provider.requests.get', return_value=thread_page([])) as mock_get:
        api.get_thread('key', '12345', cursor='resume')
    assert mock_get.call_args[1]['params'] == {'tweetId': '12345', 'cursor': 'resume'}


def test_get_thread_error_page(api):
    pages = [
        thread_page([{'id': '1'}], has_next=True, cursor='c1'),
        make_response({'message': 'Rate limited'}, 429),
    ]
    with patch('tweet_link_saver.core.provider.requests.get', side_effect=pages):
        with pytest.raises(ProviderResponseError) as exc:
            api.get_thread('key', '12345')
    assert exc.value.status_code == 429
    assert exc.value.message == 'Rate limited'


def test_get_thread_timeout_message(api):
    with patch('tweet_link_saver.core.provider.requests.get', side_effect=requests.exceptions.Timeout()):
        with pytest.raises(ProviderTimeout) as exc:
            api.get_thread('key', '12345')
    assert exc.value.message == 'twitterapi.io thread request timed out.'


def test_debug_dump_writes_payload(tmp_path):
    api = TwitterApiClient(base_url='https://api.example.test', debug_dir=str(tmp_path))
    payload = {'status': 'success', 'tweets': [{'id': '5'}]}
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response(payload)):
        api.get_tweet('key', '5')

    dumped = json.loads((tmp_path / 'tweet-link-saver-tweets.json').read_text())
    assert dumped == payload


def test_debug_dump_failure_does_not_break_request(tmp_path):
    api = TwitterApiClient(base_url='https://api.example.test', debug_dir=str(tmp_path / 'missing'))
    payload = {'status': 'success', 'tweets': [{'id': '5'}]}
    with patch('tweet_link_saver.core.provider.requests.get', return_value=make_response(payload)):
        assert api.get_tweet('key', '5') == {'id': '5'}
