"""Balance mutation: conditional saldo update plus transaction record in one commit"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tabunganku.domain.exceptions import (
    ConcurrentUpdateError,
    PersistenceError,
    StoreUnavailable,
    StudentNotFoundError,
)
from tabunganku.domain.models import Student, TransactionResult, TransactionType
from tabunganku.domain.transactions import apply_transaction, normalize_keterangan
from tabunganku.infrastructure.database.models import StudentRecord, TransactionRecord
from tabunganku.infrastructure.database.repositories import to_transaction
from tabunganku.infrastructure.observability.metrics import store_failure_counter
from tabunganku.utils.date_utils import utcnow


class TransactionProcessor:
    """Applies deposits and withdrawals to a student's saldo"""

    def __init__(
        self,
        db: Optional[Session],
        now: Callable[[], datetime] = utcnow,
        enforce_balance_precondition: bool = True,
    ):
        self.db = db
        self.now = now
        self.enforce_balance_precondition = enforce_balance_precondition

    def process(
        self,
        student: Student,
        transaction_type: TransactionType,
        amount: int,
        note: Optional[str] = None,
    ) -> TransactionResult:
        """
        Validate, compute the new saldo, and persist it with its transaction record.

        Flow:
        1. amount > 0, and for tarik amount <= student.saldo
        2. new saldo = saldo +/- amount
        3. UPDATE students SET saldo = new WHERE id = student.id AND saldo = student.saldo
        4. INSERT the transaction row
        5. Commit 3 and 4 together; any failure rolls both back

        `student` is the caller's view of the account. When its saldo no longer
        matches the stored one, step 3 matches nothing and the call fails with
        ConcurrentUpdateError instead of overwriting the newer balance.

        Raises:
            InvalidAmount, InvalidSaldo, InsufficientBalance: Validation failed, nothing written
            StoreUnavailable: No database session was provided
            StudentNotFoundError: Student was removed from the store
            ConcurrentUpdateError: Stored saldo changed since `student` was read
            PersistenceError: Any write or commit failure
        """
        transaction_type = TransactionType(transaction_type)
        new_saldo = apply_transaction(student.saldo, transaction_type, amount)

        if self.db is None:
            raise StoreUnavailable("Database session not initialized")
        db = self.db

        stmt = update(StudentRecord).where(StudentRecord.id == student.id)
        if self.enforce_balance_precondition:
            stmt = stmt.where(StudentRecord.saldo == student.saldo)
        stmt = stmt.values(saldo=new_saldo).execution_options(synchronize_session=False)

        try:
            result = db.execute(stmt)
            if result.rowcount == 0:
                db.rollback()
                self._raise_missed_update(student)

            record = TransactionRecord(
                student_id=student.id,
                student_name=student.nama,
                kelas=student.kelas,
                type=transaction_type.value,
                amount=amount,
                keterangan=normalize_keterangan(note),
                saldo_before=student.saldo,
                saldo_after=new_saldo,
                timestamp=self.now(),
            )
            db.add(record)
            db.flush()
            transaction = to_transaction(record)
            db.commit()

        except SQLAlchemyError as e:
            db.rollback()
            store_failure_counter.labels(operation="process_transaction").inc()
            logging.error(f"Transaction write failed for student {student.id}: {e}")
            raise PersistenceError(f"Could not save transaction: {e}") from e

        return TransactionResult(
            updated_student=replace(student, saldo=new_saldo),
            transaction=transaction,
        )

    @staticmethod
    def preview_saldo(saldo: int, transaction_type: TransactionType, amount: int) -> int:
        """Saldo the form would show after submitting; validates but writes nothing"""
        return apply_transaction(saldo, TransactionType(transaction_type), amount)

    def _raise_missed_update(self, student: Student) -> None:
        current = self.db.get(StudentRecord, student.id)
        if current is None:
            raise StudentNotFoundError(f"Student {student.id} not found")
        raise ConcurrentUpdateError(
            f"Saldo for student {student.id} changed from {student.saldo} to {current.saldo}"
        )
