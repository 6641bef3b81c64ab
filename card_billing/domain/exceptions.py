"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Card, purchase, statement, workspace or bank account does not exist"""

    pass


class InvalidStateError(DomainException):
    """Operation not allowed in the entity's current state"""

    pass


class ValidationError(DomainException):
    """Request data is inconsistent with the stored entities"""

    pass


class AmountMismatchError(ValidationError):
    """Payment amount differs from the statement total"""

    def __init__(self, expected_cents: int, received_cents: int):
        self.expected_cents = expected_cents
        self.received_cents = received_cents
        super().__init__(
            f"Payment amount must equal the statement total: expected {expected_cents} cents, got {received_cents}"
        )


class InsufficientFundsError(DomainException):
    """Bank account balance cannot cover a debit"""

    def __init__(self, account_id, balance_cents: int, requested_cents: int):
        self.account_id = account_id
        self.balance_cents = balance_cents
        self.requested_cents = requested_cents
        super().__init__(
            f"Insufficient balance in bank account {account_id}: available {balance_cents} cents, "
            f"requested {requested_cents}"
        )


class DuplicateEntityError(DomainException):
    """An equivalent entity already exists"""

    pass
