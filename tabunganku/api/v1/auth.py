"""Auth endpoints - sign in / sign out through the identity provider"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from tabunganku.api.v1.schemas import SessionResponse, SignInRequest, UserSchema
from tabunganku.api.dependencies import get_request_id, get_session_guard
from tabunganku.domain.exceptions import AuthUnavailable, InvalidCredentialsError
from tabunganku.infrastructure.observability.metrics import auth_failure_counter
from tabunganku.services.session_guard import SessionGuard, wait_for_auth_state

router = APIRouter()


@router.post("/auth/sign-in", response_model=SessionResponse)
async def sign_in(
    request_body: SignInRequest,
    request: Request,
    guard: SessionGuard = Depends(get_session_guard),
):
    """Establish a session for an operator the identity provider accepts"""
    request_id = get_request_id(request)

    try:
        user = await guard.sign_in(request_body.email, request_body.password)

    except InvalidCredentialsError as e:
        auth_failure_counter.labels(reason="invalid_credentials").inc()
        logging.warning(f"Sign-in rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=401, detail=str(e))

    except AuthUnavailable as e:
        auth_failure_counter.labels(reason="provider_unavailable").inc()
        logging.error(f"Identity provider error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Layanan masuk tidak tersedia. Coba lagi.")

    return SessionResponse(authenticated=True, user=UserSchema.from_domain(user))


@router.post("/auth/sign-out", status_code=204)
async def sign_out(request: Request, guard: SessionGuard = Depends(get_session_guard)):
    """Terminate the current session"""
    request_id = get_request_id(request)

    try:
        await guard.sign_out()
    except AuthUnavailable as e:
        logging.error(f"Error logging out: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Gagal keluar. Coba lagi.")

    return Response(status_code=204)


@router.get("/auth/session", response_model=SessionResponse)
async def get_session(guard: SessionGuard = Depends(get_session_guard)):
    """Whether the calling browser session is signed in"""
    user = await wait_for_auth_state(guard)
    if user is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, user=UserSchema.from_domain(user))
