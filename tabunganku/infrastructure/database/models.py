"""SQLAlchemy ORM models for students and their savings transactions"""

import uuid
from sqlalchemy import Column, BigInteger, DateTime, Text, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class StudentRecord(Base):
    """Student savings account"""

    __tablename__ = "students"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    nama = Column(Text, nullable=False)
    kelas = Column(Text, nullable=False, index=True)
    saldo = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class TransactionRecord(Base):
    """Deposit/withdrawal audit row, inserted once and never updated"""

    __tablename__ = "transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Weak reference: students do not own their transactions
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    student_name = Column(Text, nullable=False)
    kelas = Column(Text, nullable=False)
    type = Column(Text, nullable=False)  # "setor" | "tarik"
    amount = Column(BigInteger, nullable=False)
    keterangan = Column(Text, nullable=False, default="-")
    saldo_before = Column(BigInteger, nullable=False)
    saldo_after = Column(BigInteger, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
