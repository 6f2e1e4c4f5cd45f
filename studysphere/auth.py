"""
Bearer-token verification.

Tokens are issued elsewhere; this service only checks them and reads the
owner id (``user_id`` claim, falling back to ``sub``).
"""
from datetime import datetime, timedelta
from functools import wraps

from flask import current_app, g, request
from jose import JWTError, jwt

from studysphere.errors import Unauthorized

ACCESS_TOKEN_EXPIRE_MINUTES = 15


def create_access_token(user_id: str, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    exp = datetime.utcnow() + timedelta(minutes=expires_minutes)
    return jwt.encode(
        {"user_id": str(user_id), "sub": str(user_id), "exp": exp, "type": "access"},
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token: str) -> str:
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except JWTError as e:
        raise Unauthorized(f"Invalid token: {e}") from e

    user_id = payload.get("user_id") or payload.get("sub")
    if not user_id:
        raise Unauthorized("Token has no subject")
    return str(user_id)


def require_auth(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise Unauthorized("Missing bearer token")
        g.user_id = decode_token(token.strip())
        return fn(*args, **kwargs)

    return wrapper
