"""Student endpoints - list, add, fetch, class options"""

import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from tabunganku.api.v1.schemas import CreateStudentRequest, KelasResponse, StudentListResponse, StudentSchema
from tabunganku.api.dependencies import get_request_id, require_user
from tabunganku.infrastructure.database.session import get_db
from tabunganku.infrastructure.database.repositories import StudentRepository
from tabunganku.infrastructure.observability.logging import log_student_created
from tabunganku.infrastructure.observability.metrics import student_created_counter
from tabunganku.domain.exceptions import InvalidStudentData, PersistenceError, StoreUnavailable, StudentNotFoundError
from tabunganku.domain.models import AuthUser, KELAS_OPTIONS

router = APIRouter()


def parse_student_id(student_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(student_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid student ID format")


@router.get("/kelas", response_model=KelasResponse)
def list_kelas():
    """Class codes offered when adding a student"""
    return KelasResponse(kelas=list(KELAS_OPTIONS))


@router.get("/students", response_model=StudentListResponse)
def list_students(
    user: AuthUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Retrieve all students ordered by kelas, then nama.

    A failed fetch is logged by the repository and returns an empty list.
    """
    try:
        students = StudentRepository(db).list_students()
    except StoreUnavailable as e:
        logging.error(f"Store unavailable: {e}")
        raise HTTPException(status_code=503, detail="Gagal memuat data. Coba lagi.")

    return StudentListResponse(students=[StudentSchema.from_domain(s) for s in students])


@router.post("/students", response_model=StudentSchema, status_code=201)
def create_student(
    request_body: CreateStudentRequest,
    request: Request,
    user: AuthUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Add a student with an optional initial saldo (default 0)"""
    request_id = get_request_id(request)

    try:
        student = StudentRepository(db).create_student(
            nama=request_body.nama,
            kelas=request_body.kelas,
            initial_saldo=request_body.saldo,
        )

    except InvalidStudentData as e:
        raise HTTPException(status_code=422, detail=str(e))

    except StoreUnavailable as e:
        logging.error(f"Store unavailable: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Gagal menambahkan siswa. Coba lagi.")

    except PersistenceError as e:
        logging.error(f"Student insert failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Gagal menambahkan siswa. Coba lagi.")

    student_created_counter.inc()
    log_student_created(request_id, str(student.id), student.kelas, student.saldo)

    return StudentSchema.from_domain(student)


@router.get("/students/{student_id}", response_model=StudentSchema)
def get_student(
    student_id: str,
    user: AuthUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Retrieve one student's current saldo"""
    student_uuid = parse_student_id(student_id)

    try:
        student = StudentRepository(db).get_student(student_uuid)
    except StudentNotFoundError:
        raise HTTPException(status_code=404, detail="Student not found")
    except StoreUnavailable as e:
        logging.error(f"Store unavailable: {e}")
        raise HTTPException(status_code=503, detail="Gagal memuat data. Coba lagi.")

    return StudentSchema.from_domain(student)
