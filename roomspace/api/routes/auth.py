from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from roomspace.api.deps import get_settings, get_store
from roomspace.config import Settings
from roomspace.domain.models import LoginIn, RegisterIn
from roomspace.errors import ConflictError, InvalidCredentialsError, NotConfiguredError
from roomspace.repos.base_repo import ResourceStore
from roomspace.security import hash_password, mint_access_jwt, verify_password
from roomspace.services.shaper import shape_account

log = logging.getLogger(__name__)

router = APIRouter()


def _token_for(account: dict, settings: Settings) -> str:
    return mint_access_jwt(user_id=account["id"], email=account["email"], settings=settings)


@router.post("/register", status_code=201)
async def register(
    req: RegisterIn,
    store: ResourceStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    email = str(req.email).strip().lower()

    if await store.find_account_by_email(email):
        log.info("register rejected", extra={"reason": "email_already_registered"})
        raise ConflictError("User already exists with this email")

    account = await store.create_account(
        {
            "email": email,
            "password_hash": hash_password(req.password, settings=settings),
            "first_name": req.first_name.strip(),
            "last_name": req.last_name.strip(),
        }
    )
    log.info("user registered", extra={"user_id": account["id"]})

    return {
        "message": "User created successfully",
        "token": _token_for(account, settings),
        "user": shape_account(account),
    }


@router.post("/login")
async def login(
    req: LoginIn,
    store: ResourceStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    account = await store.find_account_by_email(str(req.email))
    if not account or not verify_password(req.password, account.get("password_hash") or "", settings=settings):
        log.info("login failed", extra={"reason": "invalid_credentials"})
        raise InvalidCredentialsError()

    return {
        "message": "Login successful",
        "token": _token_for(account, settings),
        "user": shape_account(account),
    }


# -------------------------
# Social sign-in (not implemented yet)
# -------------------------
@router.post("/google")
async def google_sign_in(settings: Settings = Depends(get_settings)):
    if not settings.service_available("google"):
        raise NotConfiguredError(
            "Google authentication not configured",
            details="Missing GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET environment variables",
        )
    raise NotConfiguredError(
        "Google authentication not implemented yet",
        details="OAuth integration requires additional implementation",
    )


@router.post("/apple")
async def apple_sign_in(settings: Settings = Depends(get_settings)):
    if not settings.service_available("apple"):
        raise NotConfiguredError(
            "Apple Sign In not configured",
            details="Missing APPLE_CLIENT_ID, APPLE_KEY_ID, and APPLE_TEAM_ID environment variables",
        )
    raise NotConfiguredError(
        "Apple authentication not implemented yet",
        details="Apple Sign In integration requires additional implementation",
    )
