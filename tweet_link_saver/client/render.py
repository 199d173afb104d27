import textwrap
from typing import Any, Dict, List, Optional

from tweet_link_saver.config.constants import METRIC_FIELDS
from tweet_link_saver.core.thread_view import (
    aggregate_media, author_line, compose_thread_content_blocks, format_date,
    get_author, get_tweet_text, select_video_variant, tweet_metrics
)
from tweet_link_saver.core.tweet_links import canonical_tweet_url

WIDTH = 78


def render_item_line(item: Dict[str, Any]) -> str:
    """One line per saved tweet: first line of text and author"""
    tweet = item.get('tweet') or {}
    first_line = ((tweet.get('text') or item.get('url') or '').splitlines() or [''])[0]
    return f"{item['tweetId']}  {first_line or 'Saved tweet'}  ({author_line(get_author(tweet))})"


def render_article(item: Dict[str, Any], article: List[Dict[str, Any]], thread: Optional[Dict[str, Any]] = None,
                   status: Optional[Dict[str, Any]] = None) -> str:
    """Plain-text reading view of a saved tweet and its thread"""
    lead = article[0] if article else (item.get('tweet') or {})
    author = get_author(lead)
    status = status or {}
    has_thread = bool(thread and thread.get('tweets'))
    lines = [author_line(author) if author else 'Thread']

    posted = format_date(lead.get('createdAt') or lead.get('created_at') or (lead.get('legacy') or {}).get('created_at'))
    if posted:
        lines.append(posted)
    lines.append('-' * WIDTH)

    if status.get('loading') and not has_thread:
        lines.append('Loading full thread...')
        return '\n'.join(lines)
    if status.get('error') and not has_thread:
        lines.append(f"Thread unavailable: {status['error']}")
        lines.append("Run again with --refresh to retry.")

    blocks = compose_thread_content_blocks(article)
    if not blocks and get_tweet_text(lead):
        blocks = [{'type': 'text', 'text': get_tweet_text(lead)}]

    for block in blocks:
        lines.append('')
        if block['type'] == 'text':
            lines.extend(textwrap.fill(paragraph, WIDTH) if paragraph else ''
                         for paragraph in block['text'].splitlines())
        else:
            link = block['link']
            lines.append(f"[{link['title']}] {link['displayUrl']}")
            lines.append(f"  {link['href']}")

    media = aggregate_media(article)
    if media:
        lines.append('')
        for entry in media:
            if entry.get('type') in ('video', 'animated_gif'):
                src = select_video_variant(entry)
                label = 'GIF' if entry['type'] == 'animated_gif' else 'Video'
            else:
                src = entry.get('media_url_https') or entry.get('media_url')
                label = 'Image'
            if src:
                lines.append(f"{label}: {src}")

    metrics = tweet_metrics(lead, METRIC_FIELDS)
    if metrics:
        lines.append('')
        lines.append('  '.join(metrics))

    lines.append('-' * WIDTH)
    if thread and thread.get('fetchedAt'):
        cached_on = format_date(thread['fetchedAt'])
        if cached_on:
            lines.append(f"Thread cached on {cached_on}.")
    original = item.get('url') or ''
    if not original.startswith('http'):
        original = canonical_tweet_url(item['tweetId'], author.get('userName'))
    lines.append(f"View original tweet: {original}")
    return '\n'.join(lines)
