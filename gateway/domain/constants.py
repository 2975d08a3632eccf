"""
Tunable gateway heuristics.

Every threshold, window and score delta used by the decision logic lives
here so it can be adjusted without touching the use cases.
"""

from datetime import timedelta

# Token service
TOKEN_REPLAY_WINDOW = timedelta(minutes=5)
TOKEN_DEFAULT_TTL = timedelta(hours=1)
TOKEN_ROTATION_TTL = timedelta(minutes=30)
TOKEN_RANDOM_SEED_BYTES = 64
TOKEN_SERVER_ENTROPY_BYTES = 32
TOKEN_CONFIG_KEY_PREFIX = "csrf_token:"
SESSION_ID_MIN_LENGTH = 16
SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]+$"
TOKEN_PREVIEW_LENGTH = 8

# Rate limiter
DEFAULT_RATE_LIMIT_MAX_REQUESTS = 100
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 3600
DEFAULT_RATE_LIMIT_BLOCK_SECONDS = 3600
RATE_LIMIT_OVERSHOOT_TOLERANCE = 2

# Session trust validator
# Row expiry must outlive SESSION_MAX_AGE or stale sessions read as missing
SESSION_ABSOLUTE_TTL = timedelta(days=7)
SESSION_MAX_AGE = timedelta(hours=24)
SESSION_INACTIVITY_TIMEOUT = timedelta(minutes=30)
SESSION_EVENT_LOOKBACK = timedelta(hours=1)
SESSION_HIGH_EVENT_LIMIT = 3
SESSION_DISTINCT_IP_LIMIT = 2
BURST_MIN_EVENTS = 5
BURST_MAX_GAP = timedelta(seconds=1)
SESSION_ANALYSIS_IGNORED_TYPES = frozenset({"rate_limit_attempt"})

# Geo-risk evaluator
GEO_DEFAULT_ALLOWED_COUNTRIES = ["US", "CA", "GB", "AU", "DE", "FR", "NL", "CH", "JP", "SG"]
GEO_DEFAULT_BLOCKED_COUNTRIES = ["KP", "IR", "SY", "CU", "RU", "CN", "BY"]
GEO_BLOCKED_COUNTRY_SCORE = 100
GEO_NON_ALLOWED_COUNTRY_SCORE = 40
GEO_PROXY_SCORE = 30
GEO_VPN_SCORE = 25
GEO_TOR_SCORE = 50
GEO_DATACENTER_SCORE = 20
GEO_BLOCK_THRESHOLD = 70
GEO_REVIEW_THRESHOLD = 40
GEO_UNKNOWN_SCORE = 50

# Trust elevation
TRUST_SCORE_MIN = 0
TRUST_SCORE_MAX = 100
TRUST_THRESHOLDS = {"normal": 70, "elevated": 85, "critical": 95}
ELEVATION_MIN_BASE = {"normal": 50, "elevated": 60, "critical": 75}
ELEVATION_MAX_BOOST = {"normal": 20, "elevated": 25, "critical": 20}
ELEVATION_CRITICAL_EVENT_PENALTY = 5
ELEVATION_HIGH_EVENT_PENALTY = 2
ELEVATION_UNKNOWN_DEVICE_PENALTY = 10
ELEVATION_EVENT_LOOKBACK = timedelta(hours=24)
ELEVATION_DEVICE_LOOKBACK = timedelta(days=7)
ELEVATION_DEVICE_HISTORY_LIMIT = 10

# Event filter / optimizer
EVENT_DEDUP_WINDOW = timedelta(seconds=60)
# Counter state and per-attempt audit rows are never deduplicated
EVENT_FILTER_EXEMPT_TYPES = frozenset(
    {
        "rate_limit_attempt",
        "access_elevation_attempt",
        "geo_check_passed",
        "geo_check_blocked",
    }
)
CLIENT_LOG_RETENTION = timedelta(minutes=30)
CLIENT_LOG_EVENT_TYPE = "client_log"
CLIENT_LOG_PURGE_SEVERITIES = ["info", "low", "medium"]
LOW_PRIORITY_RETENTION = timedelta(hours=24)
LOW_PRIORITY_EVENT_TYPES = ["page_view", "ui_interaction", "session_heartbeat"]
HIGH_RISK_EVENT_TYPES = frozenset(
    {
        "failed_login_attempt",
        "suspicious_activity",
        "rate_limit_exceeded",
        "csrf_token_invalid",
        "injection_attempt",
        "unauthorized_access",
    }
)
HIGH_RISK_EVENT_BONUS = 25
SEVERITY_RISK_SCORES = {
    "critical": 100,
    "high": 75,
    "medium": 50,
    "warning": 50,
    "low": 25,
    "info": 10,
}

# Client coordinators
TOKEN_ROTATION_INTERVAL = timedelta(minutes=30)
TOKEN_EXPIRY_CHECK_INTERVAL = timedelta(minutes=5)
SESSION_REVALIDATION_INTERVAL = timedelta(seconds=60)

# Store access
DEFAULT_STORE_TIMEOUT_SECONDS = 5.0
