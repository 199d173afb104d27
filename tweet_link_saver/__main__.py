import sys

from tweet_link_saver.cli import main

sys.exit(main())
