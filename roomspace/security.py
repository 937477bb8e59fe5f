from __future__ import annotations

import time
from functools import lru_cache
from typing import Any, Dict, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import JWTError, jwt

from roomspace.config import Settings, settings as default_settings

# -------------------------
# Password hashing (Argon2id, salted per hash)
# -------------------------
@lru_cache(maxsize=8)
def _hasher(time_cost: int, memory_cost: int, parallelism: int) -> PasswordHasher:
    return PasswordHasher(time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism)


def password_hasher(settings: Optional[Settings] = None) -> PasswordHasher:
    cfg = settings or default_settings
    return _hasher(cfg.PWD_TIME_COST, cfg.PWD_MEMORY_COST, cfg.PWD_PARALLELISM)


def hash_password(plain: str, *, settings: Optional[Settings] = None) -> str:
    return password_hasher(settings).hash(plain)


def verify_password(plain: str, hashed: str, *, settings: Optional[Settings] = None) -> bool:
    # cost parameters are read back from the hash itself
    try:
        return password_hasher(settings).verify(hashed, plain)
    except (VerificationError, InvalidHashError):
        return False


# -------------------------
# Access JWT
# -------------------------
def mint_access_jwt(
    *,
    user_id: str,
    email: str,
    ttl_seconds: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> str:
    cfg = settings or default_settings
    now = int(time.time())
    ttl = cfg.ACCESS_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    payload = {
        "iss": cfg.JWT_ISSUER,
        "aud": cfg.JWT_AUDIENCE,
        "iat": now,
        "nbf": min(now, now + ttl),
        "exp": now + ttl,
        "sub": user_id,
        "email": email,
    }
    return jwt.encode(payload, cfg.JWT_SECRET, algorithm=cfg.JWT_ALG)


def decode_access_jwt(token: str, *, settings: Optional[Settings] = None) -> Dict[str, Any]:
    cfg = settings or default_settings
    try:
        return jwt.decode(
            token,
            cfg.JWT_SECRET,
            algorithms=[cfg.JWT_ALG],
            audience=cfg.JWT_AUDIENCE,
            issuer=cfg.JWT_ISSUER,
        )
    except JWTError as e:
        raise ValueError(f"invalid_token: {e}") from e
