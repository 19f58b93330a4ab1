"""GET /v1/dashboard - Student list with savings summary"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from tabunganku.api.v1.schemas import DashboardResponse, StudentSchema, SummarySchema, UserSchema
from tabunganku.api.dependencies import get_session_guard, get_settings
from tabunganku.config import Settings
from tabunganku.infrastructure.database.session import get_db
from tabunganku.infrastructure.database.repositories import StudentRepository
from tabunganku.domain.exceptions import StoreUnavailable
from tabunganku.domain.summary import summarize_students
from tabunganku.services.session_guard import SessionGuard, wait_for_auth_state

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    guard: SessionGuard = Depends(get_session_guard),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    """
    Load the dashboard for the signed-in operator.

    Flow:
    1. Wait for the session's auth state
    2. Not signed in: redirect to the sign-in page
    3. Signed in: list students ordered by kelas, nama and summarize saldo
    """
    user = await wait_for_auth_state(guard)
    if user is None:
        return RedirectResponse(settings.sign_in_path, status_code=302)

    try:
        students = StudentRepository(db).list_students()
    except StoreUnavailable as e:
        logging.error(f"Store unavailable: {e}")
        raise HTTPException(status_code=503, detail="Gagal memuat data. Coba lagi.")

    summary = summarize_students(students)

    return DashboardResponse(
        user=UserSchema.from_domain(user),
        students=[StudentSchema.from_domain(s) for s in students],
        summary=SummarySchema.from_domain(summary),
    )
