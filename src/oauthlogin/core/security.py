# core/security.py

import secrets

# Bytes of entropy behind each login state token
STATE_TOKEN_BYTES = 16

# Bytes of entropy behind each account authentication token
AUTH_TOKEN_BYTES = 16


class SecurityUtils:
    @staticmethod
    def generate_state_token() -> str:
        return secrets.token_hex(STATE_TOKEN_BYTES)

    @staticmethod
    def generate_auth_token() -> str:
        return secrets.token_hex(AUTH_TOKEN_BYTES)

    @staticmethod
    def generate_session_id() -> str:
        return secrets.token_urlsafe(32)

    @staticmethod
    def constant_time_equals(expected: str, presented: str) -> bool:
        return secrets.compare_digest(expected.encode(), presented.encode())


security = SecurityUtils()
