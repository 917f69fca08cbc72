from fdeworld.services.auth import (
    create_access_token,
    create_employer_token,
    create_session_token,
    decode_access_token,
    generate_verification_token,
    session_subject,
    verification_token_expiry,
)

__all__ = [
    "create_access_token",
    "create_employer_token",
    "create_session_token",
    "decode_access_token",
    "generate_verification_token",
    "session_subject",
    "verification_token_expiry",
]
