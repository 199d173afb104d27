SUPPORTED_HOSTS = frozenset([
    'twitter.com',
    'www.twitter.com',
    'mobile.twitter.com',
    'x.com',
    'www.x.com'
])

# twitterapi.io paths
PROVIDER_PATHS = {
    'account_info': '/oapi/my/info',
    'tweets': '/twitter/tweets',
    'thread_context': '/twitter/tweet/thread_context'
}

# Proxy endpoints used by the client
ENDPOINTS = {
    'verify': '/api/verify',
    'tweet': '/api/tweets',
    'thread': '/api/thread',
    'health': '/health',
    'user_api_key': '/api/user/api-key'
}

# Client storage files, one per former localStorage key
STORAGE_FILES = {
    'items': 'tweet-link-saver-items.json',
    'api_key': 'tweet-link-saver-api-key.json',
    'threads': 'tweet-link-saver-thread-cache.json',
    'auth_email': 'tweet-link-saver-auth-email.json'
}

DEBUG_DUMP_FILES = {
    'tweets': 'tweet-link-saver-tweets.json',
    'thread': 'tweet-link-saver-thread.json'
}

INVALID_LINK_MESSAGE = 'Please enter a valid tweet link from x.com or twitter.com.'

# Tweet payload fields, in lookup order
TWEET_ID_KEYS = ('id', 'tweet_id', 'tweetId', 'rest_id')
TWEET_TIME_KEYS = ('createdAt', 'created_at')

METRIC_FIELDS = [
    ('Likes', 'likeCount'),
    ('Replies', 'replyCount'),
    ('Retweets', 'retweetCount'),
    ('Quotes', 'quoteCount'),
    ('Views', 'viewCount')
]
