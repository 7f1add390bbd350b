# auth_strategies/constants.py

# Session key holding the login state token across the provider round-trip
SESSION_STATE_KEY = "oauthlogin-state"

# Session keys set once a login is finalized
SESSION_USER_ID_KEY = "oauthlogin-user-id"
SESSION_USER_NAME_KEY = "oauthlogin-user-name"
SESSION_AUTH_TOKEN_KEY = "oauthlogin-auth-token"

# Redis key prefix for session hashes
SESSION_PREFIX = "oauthlogin:session:"

# Fixed timeout for every outbound provider call
HTTP_TIMEOUT_SECONDS = 15.0

# Standard claim keys
CLAIM_SUB = "sub"
CLAIM_EMAIL = "email"
CLAIM_PREFERRED_USERNAME = "preferred_username"
CLAIM_NAME = "name"

# Prefix for names derived from the subject claim
SUB_USERNAME_PREFIX = "oauth-"
SUB_USERNAME_LENGTH = 12
