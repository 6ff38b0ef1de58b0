from datetime import datetime, timedelta, timezone

import bcrypt
import jwt


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed hash in the DB
        return False


def create_access_token(
    data: dict,
    secret_key: str,
    expires_delta: timedelta,
    algorithm: str = "HS256",
) -> str:
    now = datetime.now(timezone.utc)
    payload = data.copy()
    payload.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_access_token(token: str, secret_key: str, algorithm: str = "HS256") -> dict:
    """
    Decode and verify a bearer token.

    Raises jwt.InvalidTokenError (incl. ExpiredSignatureError) when the
    signature, expiry or structure is wrong.
    """
    return jwt.decode(token, secret_key, algorithms=[algorithm])
