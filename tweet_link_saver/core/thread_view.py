"""
Shaping of saved tweets and cached threads for display.

Everything here works on the provider's opaque tweet dicts and tolerates
missing or oddly named fields: twitterapi.io, the legacy v1.1 layout and
GraphQL ``legacy`` blocks all show up in saved collections.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

from tweet_link_saver.config.constants import TWEET_ID_KEYS, TWEET_TIME_KEYS

logger = logging.getLogger(__name__)

TWITTER_TIME_FORMAT = '%a %b %d %H:%M:%S %z %Y'
_BLANK_LINES = re.compile(r'\n{2,}')


def _legacy(tweet: Dict[str, Any]) -> Dict[str, Any]:
    legacy = tweet.get('legacy')
    return legacy if isinstance(legacy, dict) else {}


def get_tweet_id(tweet: Any) -> Optional[str]:
    if not isinstance(tweet, dict):
        return None
    for key in TWEET_ID_KEYS:
        if tweet.get(key):
            return tweet[key]
    return None


def get_tweet_text(tweet: Any) -> str:
    if not isinstance(tweet, dict):
        return ''
    legacy = _legacy(tweet)
    text = (tweet.get('text')
            or tweet.get('full_text')
            or legacy.get('full_text')
            or legacy.get('text')
            or '')
    return text if isinstance(text, str) else ''


def parse_timestamp(raw: Any) -> Optional[int]:
    """Parse an ISO-8601 or Twitter-style date into epoch milliseconds"""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return int(raw)
    if not isinstance(raw, str) or not raw.strip():
        return None

    value = raw.strip()
    try:
        parsed = datetime.strptime(value, TWITTER_TIME_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def get_tweet_timestamp(tweet: Any) -> Optional[int]:
    if not isinstance(tweet, dict):
        return None
    raw = None
    for key in TWEET_TIME_KEYS:
        if tweet.get(key):
            raw = tweet[key]
            break
    if raw is None:
        raw = _legacy(tweet).get('created_at')
    if not raw:
        return None
    return parse_timestamp(raw)


def get_author(tweet: Any) -> Dict[str, Any]:
    if not isinstance(tweet, dict):
        return {}
    author = tweet.get('author') or tweet.get('user')
    return author if isinstance(author, dict) else {}


def _author_identity(tweet: Any) -> Tuple[Optional[str], Optional[str]]:
    author = get_author(tweet)
    author_id = str(author['id']) if author.get('id') else None
    handle = author.get('userName') or author.get('screen_name') or author.get('username')
    if isinstance(handle, str) and handle.strip():
        handle = handle.strip().lstrip('@').lower()
    else:
        handle = None
    return author_id, handle


def get_author_key(tweet: Any) -> Optional[str]:
    """Stable identity of a tweet's author, None when the payload has none"""
    author_id, handle = _author_identity(tweet)
    if author_id:
        return f"id:{author_id}"
    if handle:
        return f"handle:{handle}"
    return None


def is_other_author(tweet: Any, root_tweet: Any) -> bool:
    """True when an identity both authors carry (id or handle) differs"""
    tweet_id, tweet_handle = _author_identity(tweet)
    root_id, root_handle = _author_identity(root_tweet)
    if tweet_id and root_id and tweet_id != root_id:
        return True
    return bool(tweet_handle and root_handle and tweet_handle != root_handle)


def sanitize_thread_tweets(tweets: Optional[List[Any]]) -> List[Dict[str, Any]]:
    """Drop junk and duplicate entries, making sure every tweet carries an ``id``"""
    seen = set()
    normalized = []
    for entry in tweets or []:
        if not isinstance(entry, dict):
            continue
        tweet_id = get_tweet_id(entry)
        if not tweet_id or tweet_id in seen:
            continue
        seen.add(tweet_id)
        normalized.append(entry if entry.get('id') else {**entry, 'id': tweet_id})
    return normalized


def build_thread_sequence(root_tweet: Optional[Dict[str, Any]], fetched_tweets: Optional[List[Any]] = None,
                          same_author_only: bool = True) -> List[Dict[str, Any]]:
    """Order the saved tweet and its cached thread into one article.

    The saved tweet comes first in the candidate list so it wins over a
    duplicate copy from the thread. With ``same_author_only`` and a known
    root author, replies whose author id or handle differs from the root's
    are left out; tweets that carry no comparable identity are kept. Tweets
    with a timestamp are sorted chronologically ahead of those without,
    which keep their original order.
    """
    entries = []
    seen = set()
    filter_authors = same_author_only and get_author_key(root_tweet) is not None

    def push(tweet):
        if not isinstance(tweet, dict):
            return
        tweet_id = get_tweet_id(tweet)
        if not tweet_id or tweet_id in seen:
            return
        if filter_authors and tweet is not root_tweet and is_other_author(tweet, root_tweet):
            return
        seen.add(tweet_id)
        timestamp = get_tweet_timestamp(tweet)
        entries.append((timestamp, len(entries), tweet))

    push(root_tweet)
    for tweet in fetched_tweets or []:
        push(tweet)

    timed = sorted((entry for entry in entries if entry[0] is not None), key=lambda entry: (entry[0], entry[1]))
    untimed = [entry for entry in entries if entry[0] is None]
    return [entry[2] for entry in timed + untimed]


def simplify_url(value: str = '') -> str:
    return re.sub(r'/$', '', re.sub(r'^https?://', '', value or '', flags=re.IGNORECASE))


def extract_links(tweet: Any) -> List[Dict[str, Any]]:
    """URL entities and cards of a tweet as ``{url, expandedUrl, displayUrl, title}``"""
    if not isinstance(tweet, dict):
        return []
    legacy = _legacy(tweet)
    entities = tweet.get('entities') or legacy.get('entities') or legacy.get('extended_entities') or {}
    urls = entities.get('urls') if isinstance(entities, dict) else None
    cards = tweet.get('cards')
    results = []

    for entry in urls if isinstance(urls, list) else []:
        if not isinstance(entry, dict):
            continue
        expanded = (entry.get('expanded_url') or entry.get('expandedUrl') or entry.get('unwound_url')
                    or entry.get('unwoundUrl') or entry.get('url'))
        if not expanded:
            continue
        results.append({
            'url': entry.get('url') or expanded,
            'expandedUrl': expanded,
            'displayUrl': entry.get('display_url') or entry.get('displayUrl') or simplify_url(expanded),
            'title': entry.get('title') or entry.get('card_title')
        })

    for card in cards if isinstance(cards, list) else []:
        if not isinstance(card, dict) or not card.get('url'):
            continue
        results.append({
            'url': card['url'],
            'expandedUrl': card['url'],
            'displayUrl': card.get('display_url') or simplify_url(card['url']),
            'title': card.get('title') or card.get('name')
        })

    return results


def build_link_card(link: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    raw = link.get('expandedUrl') or link.get('url')
    if not raw:
        return None

    try:
        url = urlparse(raw if raw.startswith('http') else f"https://{raw}")
        hostname = url.hostname
    except ValueError:
        return None
    if not hostname:
        return None

    domain = re.sub(r'^www\.', '', hostname, flags=re.IGNORECASE)
    path = url.path if url.path not in ('', '/') else ''
    return {
        'href': url.geturl(),
        'url': link.get('url'),
        'title': link.get('title') or domain,
        'displayUrl': link.get('displayUrl') or f"{domain}{path}",
        'domain': domain,
        'domainInitial': domain[0].upper() if domain else None,
        'favicon': f"{url.scheme}://{hostname}/favicon.ico"
    }


def compose_thread_content_blocks(tweets: Optional[List[Any]]) -> List[Dict[str, Any]]:
    """Split the thread into paragraphs followed by link cards, tweet by tweet.

    Link URLs are stripped out of the text since they get their own card.
    """
    blocks = []
    for tweet in tweets or []:
        if not isinstance(tweet, dict):
            continue
        text = get_tweet_text(tweet)
        links = extract_links(tweet)

        for link in links:
            for value in (link.get('url'), link.get('expandedUrl')):
                if value:
                    text = text.replace(value, '').strip()

        for chunk in _BLANK_LINES.split(text):
            chunk = chunk.strip()
            if chunk:
                blocks.append({'type': 'text', 'text': chunk})

        for link in links:
            card = build_link_card(link)
            if card:
                blocks.append({'type': 'link-card', 'link': card})
    return blocks


def collect_media(tweet: Any) -> List[Dict[str, Any]]:
    if not isinstance(tweet, dict):
        return []
    for key in ('extendedEntities', 'extended_entities'):
        block = tweet.get(key)
        if isinstance(block, dict) and isinstance(block.get('media'), list):
            return [item for item in block['media'] if isinstance(item, dict)]
    return []


def aggregate_media(tweets: Optional[List[Any]]) -> List[Dict[str, Any]]:
    """All media of the thread, deduplicated by source URL and tagged with the owning tweet"""
    media = []
    seen = set()
    for tweet in tweets or []:
        items = collect_media(tweet)
        if not items:
            continue
        source_tweet_id = get_tweet_id(tweet)
        for item in items:
            src = item.get('media_url_https') or item.get('media_url') or item.get('url')
            key = src or f"{source_tweet_id or 'tweet'}-{item.get('id') or item.get('media_key') or len(media)}"
            if key in seen:
                continue
            seen.add(key)
            media.append({**item, 'sourceTweetId': source_tweet_id})
    return media


def select_video_variant(media: Dict[str, Any]) -> Optional[str]:
    """Highest bitrate mp4 of a video, falling back to the first variant"""
    variants = (media.get('video_info') or {}).get('variants') or []
    mp4 = [variant for variant in variants
           if 'mp4' in (variant.get('content_type') or '') and variant.get('url')]
    mp4.sort(key=lambda variant: variant.get('bitrate') or 0, reverse=True)
    if mp4:
        return mp4[0]['url']
    return variants[0].get('url') if variants else None


def format_count(value: Any) -> str:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return '0'
    if value < 1000:
        return str(value)
    divisor, suffix = (1000, 'K') if value < 1_000_000 else (1_000_000, 'M')
    scaled = f"{value / divisor:.1f}"
    if scaled.endswith('.0'):
        scaled = scaled[:-2]
    return f"{scaled}{suffix}"


def format_date(value: Union[int, float, str, None]) -> str:
    """Human readable local date, empty string for anything unparseable"""
    timestamp = parse_timestamp(value)
    if timestamp is None:
        return ''
    try:
        moment = datetime.fromtimestamp(timestamp / 1000)
    except (OverflowError, OSError, ValueError):
        return ''
    return moment.strftime('%b %d, %Y, %I:%M %p')


def avatar_url(author: Dict[str, Any]) -> Optional[str]:
    picture = (author or {}).get('profilePicture')
    if not picture:
        return None
    return picture.replace('_normal', '_200x200')


def author_line(author: Dict[str, Any]) -> str:
    if not author:
        return 'Unknown author'
    parts = [author.get('name') or 'Unknown']
    if author.get('userName'):
        parts.append(f"@{author['userName']}")
    return ' · '.join(parts)


def tweet_metrics(tweet: Dict[str, Any], fields) -> List[str]:
    """``Label: 1.2K`` badges for every numeric metric present on the tweet"""
    badges = []
    for label, key in fields:
        value = (tweet or {}).get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            badges.append(f"{label}: {format_count(value)}")
    return badges
