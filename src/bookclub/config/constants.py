"""Application-wide constants.

Values that are part of the platform's behaviour rather than deployment
settings. Deployment settings live in app_config.
"""

# =============================================================================
# CONVERSATION LIMITS
# =============================================================================

MAX_CONVERSATIONS_PER_CHARACTER = 10
MAX_MESSAGES_PER_CONVERSATION = 100
MAX_STORED_MESSAGES = 200
AI_CONTEXT_WINDOW_SIZE = 20
MAX_CONVERSATION_RESULTS = 50

# Messages of history forwarded to the LLM for AI chats and fine-tuned models
CHAT_HISTORY_WINDOW = 10

# =============================================================================
# VALIDATION LIMITS
# =============================================================================

MAX_MESSAGE_LENGTH = 2000
MAX_CHARACTER_ID_LENGTH = 100
MAX_CHARACTER_NAME_LENGTH = 200
MAX_SANITIZED_TEXT_LENGTH = 10000

MIN_DIARY_ENTRY_LENGTH = 10
MIN_REVIEW_SUMMARY_LENGTH = 50

# =============================================================================
# CACHING
# =============================================================================

CACHE_TTL_SECONDS = 3600

# =============================================================================
# COMMUNITY
# =============================================================================

TEMPORARY_SPACE_DAYS = 7
SPACE_MESSAGES_PREVIEW = 50
# Moderation scores above this reject the content outright
MODERATION_REJECT_SCORE = 7

CHALLENGE_LIST_DEFAULT_LIMIT = 20
CHALLENGE_LIST_MAX_LIMIT = 100
LEADERBOARD_SIZE = 100
DEFAULT_REWARD_POINTS = 100

PAYMENT_HISTORY_LIMIT = 50

# =============================================================================
# ERROR MESSAGES
# =============================================================================

ERROR_MESSAGES = {
    "AUTH_REQUIRED": "Authentication required",
    "INVALID_TOKEN": "Invalid or expired token",
    "RATE_LIMIT_EXCEEDED": "Too many requests. Please try again later.",
    "CHAT_RATE_LIMIT_EXCEEDED": "Too many messages. Please wait before sending more.",
    "VALIDATION_ERROR": "Invalid input data",
    "CHARACTER_NOT_FOUND": "Character not found",
    "CONVERSATION_NOT_FOUND": "Conversation not found",
    "MAX_CONVERSATIONS_REACHED": "Maximum conversations reached for this character",
    "MAX_MESSAGES_REACHED": "Conversation message limit reached",
    "MESSAGE_TOO_LONG": "Message exceeds maximum length",
    "AI_SERVICE_ERROR": "AI service temporarily unavailable",
    "DATABASE_ERROR": "Database operation failed",
    "INTERNAL_ERROR": "An unexpected error occurred",
}

PRODUCTION_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."
