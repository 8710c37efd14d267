from datetime import datetime, timedelta, timezone
import os

import jwt

JWT_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL_HOURS = 8
REQUIRED_CLAIMS = ("sub", "role", "exp")


def _get_jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET is required")
    if len(secret) < 32:
        raise ValueError("JWT_SECRET must be at least 32 characters")
    return secret


def _token_ttl() -> timedelta:
    return timedelta(hours=int(os.getenv("JWT_EXP_HOURS", DEFAULT_TOKEN_TTL_HOURS)))


def create_access_token(user_id: str, role: str) -> str:
    """Sign a token whose `role` claim is trusted by require_auth."""
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "role": str(role).upper(),
        "iat": issued_at,
        "exp": issued_at + _token_ttl(),
    }
    return jwt.encode(claims, _get_jwt_secret(), algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            _get_jwt_secret(),
            algorithms=[JWT_ALGORITHM],
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Token expired") from exc
    except jwt.MissingRequiredClaimError as exc:
        raise ValueError("Invalid token claims") from exc
    except jwt.PyJWTError as exc:
        raise ValueError("Invalid or expired token") from exc
