"""POST /v1/students/{student_id}/transactions - deposit (setor) and withdrawal (tarik)"""

import time
import logging
from dataclasses import replace
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from tabunganku.api.v1.schemas import PreviewResponse, StudentSchema, TransactionRequest, TransactionResponse, TransactionSchema
from tabunganku.api.v1.students import parse_student_id
from tabunganku.api.dependencies import get_request_id, get_settings, require_user
from tabunganku.config import Settings
from tabunganku.infrastructure.database.session import get_db
from tabunganku.infrastructure.database.repositories import StudentRepository
from tabunganku.infrastructure.observability.logging import log_transaction
from tabunganku.infrastructure.observability.metrics import record_transaction
from tabunganku.services.transaction_processor import TransactionProcessor
from tabunganku.domain.exceptions import (
    ConcurrentUpdateError,
    PersistenceError,
    StoreUnavailable,
    StudentNotFoundError,
    ValidationError,
)
from tabunganku.domain.models import AuthUser, TransactionType

router = APIRouter()


@router.post("/students/{student_id}/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    student_id: str,
    request_body: TransactionRequest,
    request: Request,
    user: AuthUser = Depends(require_user),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    """
    Deposit into or withdraw from a student's savings.

    Flow:
    1. Load the student
    2. Use expected_saldo (the balance the form showed) as the caller's view, if given
    3. Validate and apply the transaction atomically
    4. Return the updated student and the recorded transaction
    """
    start_time = time.time()
    request_id = get_request_id(request)
    student_uuid = parse_student_id(student_id)
    transaction_type = request_body.type.value

    try:
        student = StudentRepository(db).get_student(student_uuid)
        if request_body.expected_saldo is not None:
            student = replace(student, saldo=request_body.expected_saldo)

        processor = TransactionProcessor(
            db,
            enforce_balance_precondition=settings.enforce_balance_precondition,
        )
        result = processor.process(
            student,
            request_body.type,
            request_body.amount,
            request_body.keterangan,
        )

    except ValidationError as e:
        record_transaction(transaction_type, "rejected")
        logging.warning(f"Transaction rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except StudentNotFoundError:
        raise HTTPException(status_code=404, detail="Student not found")

    except ConcurrentUpdateError as e:
        record_transaction(transaction_type, "conflict")
        logging.warning(f"Concurrent saldo update: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Saldo telah berubah. Muat ulang data lalu coba lagi.")

    except StoreUnavailable as e:
        record_transaction(transaction_type, "failed")
        logging.error(f"Store unavailable: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Gagal menyimpan transaksi. Coba lagi.")

    except PersistenceError as e:
        record_transaction(transaction_type, "failed")
        logging.error(f"Transaction write failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Gagal menyimpan transaksi. Coba lagi.")

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    record_transaction(transaction_type, "completed", result.transaction.amount)
    log_transaction(
        request_id,
        str(student_uuid),
        transaction_type,
        result.transaction.amount,
        result.transaction.saldo_before,
        result.transaction.saldo_after,
        duration_ms,
    )

    return TransactionResponse(
        student=StudentSchema.from_domain(result.updated_student),
        transaction=TransactionSchema.from_domain(result.transaction),
    )


@router.get("/students/{student_id}/transactions/preview", response_model=PreviewResponse)
def preview_transaction(
    student_id: str,
    type: TransactionType = Query(..., description="setor or tarik"),
    amount: int = Query(..., description="Amount in rupiah"),
    user: AuthUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Show the saldo a transaction would leave, without saving anything.

    Returns 422 with the same message the submit would give when invalid.
    """
    student_uuid = parse_student_id(student_id)

    try:
        student = StudentRepository(db).get_student(student_uuid)
        saldo_after = TransactionProcessor.preview_saldo(student.saldo, type, amount)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StudentNotFoundError:
        raise HTTPException(status_code=404, detail="Student not found")
    except StoreUnavailable as e:
        logging.error(f"Store unavailable: {e}")
        raise HTTPException(status_code=503, detail="Gagal memuat data. Coba lagi.")

    return PreviewResponse(
        student_id=str(student.id),
        type=type,
        amount=amount,
        saldo_before=student.saldo,
        saldo_after=saldo_after,
    )
