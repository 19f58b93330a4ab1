"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, HTTPException, Request
from tabunganku.config import Settings
from tabunganku.domain.models import AuthUser
from tabunganku.infrastructure.clients.identity import IdentityClient
from tabunganku.services.session_guard import SessionGuard, wait_for_auth_state


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings(request: Request) -> Settings:
    """Settings the app was created with"""
    return request.app.state.settings


def get_identity_client(settings: Settings = Depends(get_settings)) -> IdentityClient:
    """Provide identity provider client instance"""
    return IdentityClient(base_url=settings.auth_api_base, timeout=settings.http_timeout_seconds)


def get_session_guard(
    request: Request,
    identity_client: IdentityClient = Depends(get_identity_client),
) -> SessionGuard:
    """Session guard bound to this request's session cookie"""
    return SessionGuard(request.session, identity_client)


async def require_user(guard: SessionGuard = Depends(get_session_guard)) -> AuthUser:
    """Reject API calls without a signed-in operator"""
    user = await wait_for_auth_state(guard)
    if user is None:
        raise HTTPException(status_code=401, detail="Silakan masuk terlebih dahulu")
    return user
