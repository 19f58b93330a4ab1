"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """User input rejected; shown inline so the form can be corrected"""

    pass


class InvalidAmount(ValidationError):
    """Transaction amount is not a positive whole number"""

    def __init__(self, message: str = "Jumlah harus lebih dari 0"):
        super().__init__(message)


class InsufficientBalance(ValidationError):
    """Withdrawal exceeds the student's current saldo"""

    def __init__(self, message: str = "Saldo tidak mencukupi"):
        super().__init__(message)


class InvalidSaldo(ValidationError):
    """Starting saldo is negative, so no transaction may be applied to it"""

    def __init__(self, message: str = "Saldo tidak valid"):
        super().__init__(message)


class InvalidStudentData(ValidationError):
    """Student fields are missing or out of range"""

    pass


class StudentNotFoundError(DomainException):
    """No student exists with the given id"""

    pass


class StoreUnavailable(DomainException):
    """Backing store is not initialized or unreachable"""

    pass


class AuthUnavailable(DomainException):
    """Identity provider unreachable, or no active session to act on"""

    pass


class InvalidCredentialsError(DomainException):
    """Identity provider rejected the sign-in credentials"""

    pass


class PersistenceError(DomainException):
    """A write failed after validation passed"""

    pass


class ConcurrentUpdateError(PersistenceError):
    """Stored saldo changed since the caller read it"""

    pass
