"""Dashboard aggregates over the student list"""

from typing import Sequence
from tabunganku.domain.models import DashboardSummary, Student


def summarize_students(students: Sequence[Student]) -> DashboardSummary:
    """Count, total and average saldo; average is 0 for an empty list"""
    total_students = len(students)
    total_saldo = sum(s.saldo for s in students)
    average_saldo = total_saldo / total_students if total_students else 0.0

    return DashboardSummary(
        total_students=total_students,
        total_saldo=total_saldo,
        average_saldo=average_saldo,
    )
