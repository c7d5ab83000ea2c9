"""
Constants and configuration values for Mindweave discovery.
"""

# Blended Recommendation Score
SIMILARITY_WEIGHT = 0.5
RECENCY_WEIGHT = 0.2
NOVELTY_WEIGHT = 0.3
RECENCY_DECAY_DAYS = 90  # exp(-age / 90)

# Novelty Bonus (by days since last view)
NOVELTY_NEVER_VIEWED = 1.0
NOVELTY_VIEWED_LONG_AGO = 0.67  # > 7 days
NOVELTY_VIEWED_THIS_WEEK = 0.33  # 1..7 days inclusive
NOVELTY_VIEWED_TODAY = 0.0  # < 1 day
NOVELTY_WEEK_DAYS = 7
NOVELTY_DAY_DAYS = 1

SECONDS_PER_DAY = 86400

# Content Clustering
DEFAULT_CLUSTER_COUNT = 5
MIN_ITEMS_TO_CLUSTER = 2
MAX_CLUSTERS = 8  # Bounds LLM naming calls per request
KMEANS_MAX_ITERATIONS = 50
CLUSTER_PREVIEW_COUNT = 5
DEFAULT_CLUSTER_NAME = "Cluster"
DEFAULT_CLUSTER_DESCRIPTION = "Group of related items"

# LLM Configuration
LLM_CLUSTER_NAME_MODEL = "claude-haiku-4-5-20251001"
LLM_CLUSTER_MAX_TOKENS = 100
LLM_CLUSTER_TITLE_SAMPLES = 10  # Titles per cluster for naming context
LLM_TEMPERATURE = 0.2
LLM_API_URL = "https://api.anthropic.com/v1/messages"
LLM_API_VERSION = "2023-06-01"
LLM_HTTP_CONNECT_TIMEOUT = 10.0
LLM_HTTP_READ_TIMEOUT = 30.0
LLM_HTTP_WRITE_TIMEOUT = 10.0
LLM_HTTP_POOL_TIMEOUT = 5.0
LLM_HTTP_USER_AGENT = "mindweave/0.1"

# Discovery Feeds
DISCOVER_MIN_LIMIT = 1
DISCOVER_MAX_LIMIT = 20
ACTIVITY_SEED_COUNT = 5
ACTIVITY_NEIGHBORS = 6
ACTIVITY_MIN_SIMILARITY = 0.2
ACTIVITY_EXCLUDE_HOURS = 24  # Skip items viewed within this window
REDISCOVER_SEED_COUNT = 3
REDISCOVER_NEIGHBORS = 8
REDISCOVER_MIN_SIMILARITY = 0.2
BLENDED_SEED_COUNT = 3
BLENDED_NEIGHBORS = 4
BLENDED_MIN_SIMILARITY = 0.3
STALE_CONTENT_DAYS = 30  # "Old" content and "recent" view window
UNEXPLORED_SIMILARITY = 0.5  # Neutral similarity for tag-based picks
UNEXPLORED_CANDIDATE_FACTOR = 3
SIMILAR_DEFAULT_LIMIT = 5
SIMILAR_DEFAULT_MIN_SIMILARITY = 0.5
