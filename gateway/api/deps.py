from fastapi import Request

from gateway.core.exceptions import NotAuthenticated
from gateway.core.security import decode_access_token
from gateway.schemas.user import UserProfile
from gateway.services.directus import AuthProvider, ContentStore


def get_content_store(request: Request) -> ContentStore:
    return request.app.state.content_store


def get_auth_provider(request: Request) -> AuthProvider:
    return request.app.state.auth_provider


def get_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise NotAuthenticated("Access token required")
    return token.strip()


def get_current_user(request: Request) -> UserProfile:
    """Resolve the caller from the gateway bearer token."""
    user = decode_access_token(get_bearer_token(request))
    request.state.user = user
    return user
