"""Balance arithmetic for deposits (setor) and withdrawals (tarik)"""

from typing import Optional
from tabunganku.domain.exceptions import InvalidAmount, InsufficientBalance, InvalidSaldo
from tabunganku.domain.models import DEFAULT_KETERANGAN, TransactionType


def validate_amount(amount: int) -> None:
    """Reject anything that is not a positive whole rupiah amount"""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount()
    if amount <= 0:
        raise InvalidAmount()


def apply_transaction(saldo: int, transaction_type: TransactionType, amount: int) -> int:
    """
    Compute the saldo that results from a transaction.

    Rules:
    - amount must be > 0
    - the starting saldo must be >= 0
    - a withdrawal may not exceed the current saldo, so the result is never negative

    Args:
        saldo: Balance before the transaction
        transaction_type: DEPOSIT or WITHDRAWAL
        amount: Positive amount in rupiah

    Returns:
        Balance after the transaction

    Raises:
        InvalidAmount: amount is zero, negative, or not a whole number
        InvalidSaldo: starting saldo is negative
        InsufficientBalance: withdrawal larger than saldo

    Example:
        saldo 10000, tarik 10000 → 0
        saldo 10000, tarik 20000 → InsufficientBalance
    """
    validate_amount(amount)
    if saldo < 0:
        raise InvalidSaldo()

    if TransactionType(transaction_type) is TransactionType.DEPOSIT:
        return saldo + amount

    if amount > saldo:
        raise InsufficientBalance()
    return saldo - amount


def normalize_keterangan(note: Optional[str]) -> str:
    """Blank notes are stored as the placeholder"""
    if note is None or not note.strip():
        return DEFAULT_KETERANGAN
    return note.strip()
