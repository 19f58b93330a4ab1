"""Data access layer for students"""

import logging
import uuid
from typing import Callable, List, Optional
from datetime import datetime
from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tabunganku.infrastructure.database.models import StudentRecord, TransactionRecord
from tabunganku.infrastructure.observability.metrics import store_failure_counter
from tabunganku.domain.exceptions import (
    InvalidStudentData,
    PersistenceError,
    StoreUnavailable,
    StudentNotFoundError,
)
from tabunganku.domain.models import KELAS_OPTIONS, Student, Transaction, TransactionType
from tabunganku.utils.date_utils import ensure_aware, utcnow


def to_student(record: StudentRecord) -> Student:
    """Map ORM row to domain entity"""
    return Student(
        id=record.id,
        nama=record.nama,
        kelas=record.kelas,
        saldo=record.saldo,
        created_at=ensure_aware(record.created_at) if record.created_at else None,
    )


def to_transaction(record: TransactionRecord) -> Transaction:
    """Map ORM row to domain entity"""
    return Transaction(
        id=record.id,
        student_id=record.student_id,
        student_name=record.student_name,
        kelas=record.kelas,
        type=TransactionType(record.type),
        amount=record.amount,
        keterangan=record.keterangan,
        saldo_before=record.saldo_before,
        saldo_after=record.saldo_after,
        timestamp=ensure_aware(record.timestamp),
    )


def student_list_statement(dialect_name: str) -> Select:
    """Students ordered by kelas, then nama, by code point

    PostgreSQL locale collations ignore case ("ahmad" before "Budi"), so the
    byte-order "C" collation is forced there. SQLite already compares bytes.
    """
    kelas, nama = StudentRecord.kelas, StudentRecord.nama
    if dialect_name == "postgresql":
        kelas, nama = kelas.collate("C"), nama.collate("C")
    return select(StudentRecord).order_by(kelas.asc(), nama.asc())


class StudentRepository:
    """Repository for student savings accounts"""

    def __init__(self, db: Optional[Session], now: Callable[[], datetime] = utcnow):
        self.db = db
        self.now = now

    def _session(self) -> Session:
        if self.db is None:
            raise StoreUnavailable("Database session not initialized")
        return self.db

    def list_students(self) -> List[Student]:
        """
        Fetch all students ordered by kelas, then nama.

        Fetch errors are logged and yield an empty list rather than raising.

        Raises:
            StoreUnavailable: No database session was provided
        """
        db = self._session()
        try:
            statement = student_list_statement(db.get_bind().dialect.name)
            records = db.execute(statement).scalars().all()
        except SQLAlchemyError as e:
            store_failure_counter.labels(operation="list_students").inc()
            logging.error(f"Error loading students: {e}")
            db.rollback()
            return []

        return [to_student(r) for r in records]

    def get_student(self, student_id: uuid.UUID) -> Student:
        """Fetch a single student by id"""
        db = self._session()
        try:
            record = db.get(StudentRecord, student_id)
        except SQLAlchemyError as e:
            store_failure_counter.labels(operation="get_student").inc()
            raise StoreUnavailable(f"Could not load student {student_id}: {e}") from e

        if record is None:
            raise StudentNotFoundError(f"Student {student_id} not found")
        return to_student(record)

    def create_student(self, nama: str, kelas: str, initial_saldo: int = 0) -> Student:
        """
        Validate and persist a new student.

        Raises:
            InvalidStudentData: Blank nama, unknown kelas, or negative initial saldo
            StoreUnavailable: No database session was provided
            PersistenceError: Insert or commit failed
        """
        nama = (nama or "").strip()
        kelas = (kelas or "").strip()

        if not nama:
            raise InvalidStudentData("Nama siswa wajib diisi")
        if not kelas:
            raise InvalidStudentData("Kelas wajib dipilih")
        if kelas not in KELAS_OPTIONS:
            raise InvalidStudentData(f"Kelas tidak dikenal: {kelas}")
        if isinstance(initial_saldo, bool) or not isinstance(initial_saldo, int) or initial_saldo < 0:
            raise InvalidStudentData("Saldo awal tidak boleh negatif")

        db = self._session()
        record = StudentRecord(
            nama=nama,
            kelas=kelas,
            saldo=initial_saldo,
            created_at=self.now(),
        )
        try:
            db.add(record)
            db.commit()
            db.refresh(record)
        except SQLAlchemyError as e:
            db.rollback()
            store_failure_counter.labels(operation="create_student").inc()
            raise PersistenceError(f"Could not create student: {e}") from e

        return to_student(record)
