"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from tabunganku.domain.models import AuthUser, DashboardSummary, Student, Transaction, TransactionType


class StudentSchema(BaseModel):
    """Student row in the dashboard table"""

    id: str
    nama: str
    kelas: str
    saldo: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, student: Student) -> "StudentSchema":
        return cls(
            id=str(student.id),
            nama=student.nama,
            kelas=student.kelas,
            saldo=student.saldo,
            created_at=student.created_at,
        )


class CreateStudentRequest(BaseModel):
    """Request body for POST /v1/students"""

    # Blank values are rejected by the repository so the message matches the form
    nama: str = ""
    kelas: str = ""
    saldo: int = Field(0, description="Initial saldo in rupiah")


class TransactionRequest(BaseModel):
    """Request body for POST /v1/students/{student_id}/transactions"""

    type: TransactionType
    amount: int = Field(..., description="Amount in rupiah; must be > 0")
    keterangan: Optional[str] = Field(None, description="Optional note")
    expected_saldo: Optional[int] = Field(
        None,
        ge=0,
        description="Saldo shown when the form was opened; omitted means the current stored saldo",
    )


class TransactionSchema(BaseModel):
    """Recorded transaction"""

    id: str
    student_id: str
    student_name: str
    kelas: str
    type: TransactionType
    amount: int
    keterangan: str
    saldo_before: int
    saldo_after: int
    timestamp: datetime

    @classmethod
    def from_domain(cls, transaction: Transaction) -> "TransactionSchema":
        return cls(
            id=str(transaction.id),
            student_id=str(transaction.student_id),
            student_name=transaction.student_name,
            kelas=transaction.kelas,
            type=transaction.type,
            amount=transaction.amount,
            keterangan=transaction.keterangan,
            saldo_before=transaction.saldo_before,
            saldo_after=transaction.saldo_after,
            timestamp=transaction.timestamp,
        )


class TransactionResponse(BaseModel):
    """Response for POST /v1/students/{student_id}/transactions"""

    student: StudentSchema
    transaction: TransactionSchema


class PreviewResponse(BaseModel):
    """Response for GET /v1/students/{student_id}/transactions/preview"""

    student_id: str
    type: TransactionType
    amount: int
    saldo_before: int
    saldo_after: int


class SummarySchema(BaseModel):
    total_students: int
    total_saldo: int
    average_saldo: float

    @classmethod
    def from_domain(cls, summary: DashboardSummary) -> "SummarySchema":
        return cls(
            total_students=summary.total_students,
            total_saldo=summary.total_saldo,
            average_saldo=summary.average_saldo,
        )


class UserSchema(BaseModel):
    uid: str
    email: str

    @classmethod
    def from_domain(cls, user: AuthUser) -> "UserSchema":
        return cls(uid=user.uid, email=user.email)


class DashboardResponse(BaseModel):
    """Response for GET /v1/dashboard"""

    user: UserSchema
    students: List[StudentSchema]
    summary: SummarySchema


class StudentListResponse(BaseModel):
    students: List[StudentSchema]


class KelasResponse(BaseModel):
    kelas: List[str]


class SignInRequest(BaseModel):
    """Request body for POST /v1/auth/sign-in"""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Auth state of the calling session"""

    authenticated: bool
    user: Optional[UserSchema] = None
