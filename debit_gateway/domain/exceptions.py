"""Domain-specific exceptions tagged with an error kind"""

from enum import Enum


class ErrorKind(str, Enum):
    """Discriminator used to branch on errors without inspecting messages"""

    NOT_FOUND = "not_found"
    BUSINESS_RULE = "business_rule"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    CONCURRENT_UPDATE = "concurrent_update"
    UPSTREAM_FAILURE = "upstream_failure"
    SERVICE_UNAVAILABLE = "service_unavailable"


# Kinds that describe a valid business outcome rather than a broken dependency
DOMAIN_OUTCOME_KINDS = frozenset(
    {
        ErrorKind.NOT_FOUND,
        ErrorKind.BUSINESS_RULE,
        ErrorKind.INSUFFICIENT_FUNDS,
        ErrorKind.CONCURRENT_UPDATE,
    }
)


class DomainException(Exception):
    """Base exception for domain layer"""

    kind: ErrorKind = ErrorKind.BUSINESS_RULE


class NotFoundError(DomainException):
    """Customer, account or debit card does not exist"""

    kind = ErrorKind.NOT_FOUND


class CustomerNotFoundError(NotFoundError):
    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"Customer not found: {customer_id}")


class AccountNotFoundError(NotFoundError):
    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class DebitCardNotFoundError(NotFoundError):
    pass


class BusinessRuleViolation(DomainException):
    """A business rule prevents the operation"""

    kind = ErrorKind.BUSINESS_RULE


class TransactionRejectedError(BusinessRuleViolation):
    """Transaction service answered FAILED for a reason other than funds"""

    pass


class InsufficientFundsError(DomainException):
    """Account balance cannot cover the withdrawal"""

    kind = ErrorKind.INSUFFICIENT_FUNDS


class AggregateInsufficientFundsError(InsufficientFundsError):
    """Every associated account was tried and none could cover the withdrawal"""

    def __init__(self, accounts_attempted: int):
        self.accounts_attempted = accounts_attempted
        super().__init__(f"Insufficient funds in all {accounts_attempted} associated accounts")


class ConcurrentUpdateError(DomainException):
    """Debit card was modified by another request since it was read"""

    kind = ErrorKind.CONCURRENT_UPDATE


class UpstreamServiceError(DomainException):
    """Downstream service failed: 5xx, malformed response or unexpected status"""

    kind = ErrorKind.UPSTREAM_FAILURE

    def __init__(self, message: str, retryable: bool = False):
        self.retryable = retryable
        super().__init__(message)


class ServiceUnavailableError(DomainException):
    """Downstream service unavailable after retries or while the circuit is open"""

    kind = ErrorKind.SERVICE_UNAVAILABLE

    def __init__(self, service: str, message: str | None = None):
        self.service = service
        super().__init__(
            message or f"{service} is currently unavailable. Please try again later."
        )


def is_domain_outcome(error: BaseException) -> bool:
    """True when the error is an expected business outcome, not an infrastructure failure"""
    return isinstance(error, DomainException) and error.kind in DOMAIN_OUTCOME_KINDS
