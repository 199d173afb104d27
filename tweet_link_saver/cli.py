import argparse
import logging
import os
import sys
from typing import List, Optional

from tweet_link_saver.config.config import Config
from tweet_link_saver.core.errors import DuplicateItemError, ProxyError
from tweet_link_saver.core.logging_setup import setup_logging
from tweet_link_saver.client.collection import TweetCollection
from tweet_link_saver.client.proxy_client import ProxyClient
from tweet_link_saver.client.render import render_article, render_item_line
from tweet_link_saver.client.storage import LocalStore
from tweet_link_saver.client.sync import AuthState, RemoteApiKeySync, SyncState

logger = logging.getLogger(__name__)


def _collection(args) -> TweetCollection:
    store = LocalStore(args.data_dir)
    collection = TweetCollection(store, ProxyClient(args.proxy_url)).load()
    collection.api_key = store.load_api_key()
    return collection


def _mask(api_key: str) -> str:
    return f"{api_key[:4]}...{api_key[-4:]}" if len(api_key) > 8 else '*' * len(api_key)


def cmd_serve(args) -> int:
    from tweet_link_saver.web.server import create_app

    summary = Config.validate()
    logger.info(f"Configuration: {summary}")
    app = create_app()
    logger.info(f"Proxy listening on http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=Config.DEBUG)
    return 0


def cmd_key(args) -> int:
    collection = _collection(args)
    if args.key_command == 'set':
        credits = collection.authenticate(args.api_key)
        print('API key verified.')
        if credits is not None:
            print(f"Credits: {credits:,}")
    elif args.key_command == 'verify':
        if not collection.restore_api_key():
            print('No API key stored. Run "key set <key>" first.')
            return 1
        print('API key verified.')
        if collection.credits is not None:
            print(f"Credits: {collection.credits:,}")
    elif args.key_command == 'show':
        if not collection.api_key:
            print('API key required to fetch tweets.')
            return 1
        print(f"Stored API key: {_mask(collection.api_key)}")
    elif args.key_command == 'clear':
        collection.forget_api_key()
        print('API key removed.')
    return 0


def cmd_save(args) -> int:
    collection = _collection(args)
    item = collection.save(args.url)
    print('Tweet saved.')
    print(render_item_line(item))
    return 0


def cmd_list(args) -> int:
    collection = _collection(args)
    if not collection.items:
        print('Save a tweet to start a collection.')
        return 0
    for item in collection.items:
        print(render_item_line(item))
    return 0


def cmd_show(args) -> int:
    collection = _collection(args)
    item = collection.get(args.tweet_id)
    if not item:
        print(f"No saved tweet with id {args.tweet_id}.")
        return 1

    collection.load_thread(args.tweet_id, force=args.refresh)
    # A failed refresh keeps the previously cached thread
    thread = collection.threads.get(args.tweet_id)
    if args.all_authors:
        from tweet_link_saver.core.thread_view import build_thread_sequence
        article = build_thread_sequence(item.get('tweet'), (thread or {}).get('tweets') or [], same_author_only=False)
    else:
        article = collection.article(args.tweet_id)
    print(render_article(item, article, thread=thread,
                         status=collection.status(args.tweet_id)))
    return 0


def cmd_delete(args) -> int:
    collection = _collection(args)
    if not collection.delete(args.tweet_id):
        print(f"No saved tweet with id {args.tweet_id}.")
        return 1
    print('Tweet deleted.')
    return 0


def cmd_sync(args) -> int:
    token = args.token or os.getenv('FIREBASE_ID_TOKEN')
    auth = AuthState(available=Config.sync_enabled() or bool(token))
    if auth.available:
        auth.status = 'signed-in' if token else 'signed-out'
    state = SyncState()
    state.handle_auth_state_change(auth)

    if args.sync_command == 'status':
        print(f"Sync status: {state.status}")
        return 0

    if state.status != 'idle':
        print('Sign in first: pass --token or set FIREBASE_ID_TOKEN.')
        return 1

    store = LocalStore(args.data_dir)
    remote = RemoteApiKeySync(args.proxy_url, lambda: token)
    if args.sync_command == 'pull':
        record = remote.fetch()
        if not record.get('apiKey'):
            print('No API key stored in the cloud.')
            return 1
        collection = TweetCollection(store, ProxyClient(args.proxy_url)).load()
        collection.authenticate(record['apiKey'])
        print('API key restored from the cloud.')
    elif args.sync_command == 'push':
        api_key = store.load_api_key()
        if not api_key:
            print('No local API key to upload.')
            return 1
        remote.store(api_key)
        print('API key uploaded.')
    elif args.sync_command == 'clear':
        remote.delete()
        print('Cloud copy of the API key removed.')
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='tweet-link-saver', description='Save tweet links and read their threads')
    parser.add_argument('--data-dir', default=str(Config.CLIENT_DATA_DIR), help='Where the collection is stored')
    parser.add_argument('--proxy-url', default=Config.PROXY_URL, help='Base URL of the proxy server')
    parser.add_argument('--log-level', default=Config.LOG_LEVEL)
    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Run the proxy server')
    serve.add_argument('--host', default='0.0.0.0')
    serve.add_argument('--port', type=int, default=Config.PORT)
    serve.set_defaults(func=cmd_serve)

    key = subparsers.add_parser('key', help='Manage the twitterapi.io API key')
    key_commands = key.add_subparsers(dest='key_command', required=True)
    key_set = key_commands.add_parser('set', help='Verify and store a key')
    key_set.add_argument('api_key')
    key_commands.add_parser('verify', help='Re-verify the stored key')
    key_commands.add_parser('show', help='Show the stored key, masked')
    key_commands.add_parser('clear', help='Forget the stored key')
    key.set_defaults(func=cmd_key)

    save = subparsers.add_parser('save', help='Save a tweet link')
    save.add_argument('url')
    save.set_defaults(func=cmd_save)

    list_parser = subparsers.add_parser('list', help='List saved tweets, most recent first')
    list_parser.set_defaults(func=cmd_list)

    show = subparsers.add_parser('show', help='Read a saved tweet with its thread')
    show.add_argument('tweet_id')
    show.add_argument('--refresh', action='store_true', help='Fetch the thread again even if cached')
    show.add_argument('--all-authors', action='store_true', help='Keep replies from other authors')
    show.set_defaults(func=cmd_show)

    delete = subparsers.add_parser('delete', help='Delete a saved tweet and its cached thread')
    delete.add_argument('tweet_id')
    delete.set_defaults(func=cmd_delete)

    sync = subparsers.add_parser('sync', help='Cloud sync of the API key')
    sync.add_argument('sync_command', choices=['status', 'pull', 'push', 'clear'])
    sync.add_argument('--token', help='Firebase ID token of the signed-in user')
    sync.set_defaults(func=cmd_sync)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, Config.LOG_FILE)
    try:
        return args.func(args)
    except DuplicateItemError as e:
        print(str(e))
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    except ProxyError as e:
        print(f"Error: {e.message}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
