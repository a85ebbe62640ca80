"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is malformed: blank identifiers, empty item lists, bad quantities"""

    pass


class InvalidAmountError(ValidationError):
    """Monetary amount must be strictly positive"""

    pass


class UnsupportedMethodError(ValidationError):
    """No payment processor exists for the requested method"""

    pass


class InvalidStateError(DomainException):
    """Operation is not permitted in the aggregate's current lifecycle state"""

    pass


class AlreadyPaidError(InvalidStateError):
    """Payment is settled and accepts no further installments"""

    pass


class NotFoundError(DomainException):
    """Repository lookup miss"""

    pass


class PersistenceError(DomainException):
    """Storage collaborator failed"""

    pass
