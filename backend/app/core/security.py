from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import re
import secrets

from jose import JWTError, ExpiredSignatureError, jwt
import bcrypt

from app.core.config import settings
from app.core.exceptions import InvalidTokenError, WeakPasswordError

MIN_PASSWORD_LENGTH = 8


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash"""
    if not plain_password or not hashed_password:
        return False
    # Bcrypt has a 72 byte limit
    password_bytes = plain_password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash password with a per-password salt (BCRYPT_ROUNDS in .env)"""
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def validate_password_strength(password: str) -> None:
    """Raise WeakPasswordError unless the password has 8+ chars, a letter and a digit"""
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not re.search(r"[A-Za-z]", password):
        raise WeakPasswordError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise WeakPasswordError("Password must contain at least one number")


def generate_random_password(length: int = 16) -> str:
    """Random password that always passes validate_password_strength"""
    while True:
        candidate = secrets.token_urlsafe(length)[:length]
        if re.search(r"[A-Za-z]", candidate) and re.search(r"\d", candidate):
            return candidate


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(data: Dict[str, Any]) -> str:
    """Create JWT refresh token"""
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, expected_type: Optional[str] = None) -> Dict[str, Any]:
    """Decode a JWT, optionally requiring its "type" claim"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise InvalidTokenError("Token has expired")
    except JWTError:
        raise InvalidTokenError()

    if expected_type and payload.get("type") != expected_type:
        raise InvalidTokenError("Invalid token type")
    if not payload.get("sub"):
        raise InvalidTokenError()
    return payload


def create_token_pair(user_id: str, role: str) -> Dict[str, str]:
    """Access + refresh token for a user, as returned by login/register/refresh"""
    claims = {"sub": str(user_id), "role": role}
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token({"sub": str(user_id)}),
        "token_type": "bearer",
    }
