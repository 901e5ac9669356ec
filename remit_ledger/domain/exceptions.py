"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Request is missing fields or carries invalid values"""

    pass


class NotFoundError(DomainException):
    """Referenced record does not exist"""

    pass


class InsufficientBalanceError(DomainException):
    """Client balance does not cover the requested debit"""

    pass


class DuplicateRecordError(DomainException):
    """A unique field is already taken"""

    pass


class InvalidSettingError(DomainException):
    """Stored or submitted setting value cannot be interpreted"""

    pass


class AuthenticationError(DomainException):
    """Missing, invalid or expired credentials"""

    pass
