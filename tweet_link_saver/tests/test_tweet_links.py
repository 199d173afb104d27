import pytest

from tweet_link_saver.core.tweet_links import canonical_tweet_url, extract_tweet_id


@pytest.mark.parametrize('link, expected', [
    ('https://x.com/ada/status/1790000000000000001', '1790000000000000001'),
    ('https://twitter.com/ada/status/12345?s=20', '12345'),
    ('https://www.x.com/ada/status/12345', '12345'),
    ('https://mobile.twitter.com/ada/status/12345/photo/1', '12345'),
    ('https://x.com/i/web/status/12345', '12345'),
    ('  https://X.com/ada/status/12345  ', '12345'),
    ('x.com/ada/status/12345', '12345'),
    ('twitter.com/ada/status/12345', '12345'),
    ('ftp://x.com/ada/status/12345', '12345'),
])
def test_extract_tweet_id_accepts_status_links(link, expected):
    assert extract_tweet_id(link) == expected


def test_last_segment_used_without_status():
    assert extract_tweet_id('https://x.com/ada/12345678') == '12345678'


@pytest.mark.parametrize('link', [
    None,
    '',
    'not a link',
    'https://example.com/ada/status/12345',
    'https://x.com.evil.test/ada/status/12345',
    'https://x.com/ada',
    'https://x.com/ada/status',
    'https://x.com/ada/status/1234',
    'https://x.com/ada/status/abcdef',
])
def test_extract_tweet_id_rejects(link):
    assert extract_tweet_id(link) is None


def test_canonical_url():
    assert canonical_tweet_url('12345', 'ada') == 'https://x.com/ada/status/12345'
    assert canonical_tweet_url('12345') == 'https://x.com/i/status/12345'
