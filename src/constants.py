"""Application-wide constants.

This module centralizes magic numbers, Facebook API details and the literal
reply texts so there is a single source of truth for each of them.
"""

# =============================================================================
# Facebook API
# =============================================================================

# Base URL of the Facebook Graph API
FACEBOOK_GRAPH_API_URL = "https://graph.facebook.com"

# Graph API version used for the Send API
FACEBOOK_GRAPH_API_VERSION = "v18.0"

# Public profile fields requested for a Messenger user
FACEBOOK_USER_DATA_FIELDS = ("first_name", "last_name", "profile_pic")

# Header carrying the webhook payload signature
FACEBOOK_SIGNATURE_HEADER = "X-Hub-Signature-256"

# =============================================================================
# HTTP Timeout Configuration
# =============================================================================

# Timeout for Facebook Graph API calls (seconds)
FACEBOOK_API_TIMEOUT_SECONDS = 10.0

# =============================================================================
# Cache Configuration
# =============================================================================

# TTL for canned message cache (seconds) - 5 minutes
FACEBOOK_MESSAGE_CACHE_TTL_SECONDS = 300

# =============================================================================
# Quick Replies
# =============================================================================

QUICK_REPLY_CONTENT_TYPE_TEXT = "text"

# Payload sent back by Messenger when the user accepts account creation
CREATE_ACCOUNT_PAYLOAD = "CREATE_ACCOUNT"

# Payload sent back by Messenger when the user declines account creation
DECLINE_ACCOUNT_PAYLOAD = "DECLINE_ACCOUNT"

# =============================================================================
# Reply Texts
# =============================================================================

BRAND_NAME = "Charles d'Née"

ADD_WINE_TEMPLATE = (
    "How lovely! Would you like to add a new bottle of {colour} to your cellar?"
)

CREATE_ACCOUNT_TEXT = f"Would you like to create your account with {BRAND_NAME}?"

CREATE_ACCOUNT_ACCEPT_TITLE = "Yes please!"

CREATE_ACCOUNT_DECLINE_TITLE = "Not now"

ACCOUNT_CONFIRMED_TEMPLATE = "Welcome to {brand}, {name}! Your cellar is ready."

ACCOUNT_CONFIRMED_TEXT = f"Welcome to {BRAND_NAME}! Your cellar is ready."

# Used when no fallback message has been authored in the store
DEFAULT_FALLBACK_TEXT = (
    "Sorry, I didn't quite catch that. You can tell me about a bottle "
    "you've just opened, or ask to create an account."
)
