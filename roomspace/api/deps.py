from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from roomspace.config import Settings
from roomspace.errors import AuthError, InvalidTokenError
from roomspace.repos.base_repo import ResourceStore
from roomspace.security import decode_access_jwt
from roomspace.services.design_generator import DesignGenerator
from roomspace.services.product_search import ProductSearch

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str | None = None


# -------------------------
# Injected collaborators (set on app.state by create_app)
# -------------------------
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> ResourceStore:
    return request.app.state.store


def get_design_generator(request: Request) -> DesignGenerator:
    return request.app.state.design_generator


def get_product_search(request: Request) -> ProductSearch:
    return request.app.state.product_search


# -------------------------
# Auth
# -------------------------
def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    if not creds or not creds.credentials:
        raise AuthError()
    try:
        claims = decode_access_jwt(creds.credentials, settings=settings)
    except ValueError:
        raise InvalidTokenError()

    sub = claims.get("sub")
    if not sub:
        raise InvalidTokenError()

    user = CurrentUser(id=str(sub), email=claims.get("email"))
    request.state.user_id = user.id
    return user
