"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

# Class codes offered by the add-student form, grades 1-6 with two rooms each
KELAS_OPTIONS = (
    "1A", "1B",
    "2A", "2B",
    "3A", "3B",
    "4A", "4B",
    "5A", "5B",
    "6A", "6B",
)

# Stored when a transaction is submitted without a note
DEFAULT_KETERANGAN = "-"


class TransactionType(str, Enum):
    """Direction of a savings transaction"""

    DEPOSIT = "setor"
    WITHDRAWAL = "tarik"


@dataclass(frozen=True)
class Student:
    """Student savings account"""

    id: uuid.UUID
    nama: str
    kelas: str
    saldo: int  # rupiah, never negative
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Transaction:
    """Append-only record of one deposit or withdrawal"""

    id: uuid.UUID
    student_id: uuid.UUID
    student_name: str  # snapshot at transaction time
    kelas: str
    type: TransactionType
    amount: int
    keterangan: str
    saldo_before: int
    saldo_after: int
    timestamp: datetime


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of a processed transaction"""

    updated_student: Student
    transaction: Transaction


@dataclass(frozen=True)
class DashboardSummary:
    """Aggregate figures shown under the student table"""

    total_students: int
    total_saldo: int
    average_saldo: float


@dataclass(frozen=True)
class AuthUser:
    """Signed-in operator as reported by the identity provider"""

    uid: str
    email: str
    id_token: str
