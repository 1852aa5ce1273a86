"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Employee
  2xxx: Account/Ledger
  3xxx: Wellness
  4xxx: Store
  5xxx: Transfer
  9xxx: System

Each concrete error also belongs to one family (NotFoundError, InvalidStateError,
ValidationError) so callers can catch a whole category.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class NotFoundError(AppError):
    """Referenced entity does not exist. Never retried automatically."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class InvalidStateError(AppError):
    """Entity exists but is not in a state that allows the operation."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 409)


class ValidationError(AppError):
    """Input rejected before any persistence attempt."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


# --- 1xxx: Auth/Employee ---

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class EmployeeDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Employee is disabled", 403)


class EmployeeNotFoundError(NotFoundError):
    def __init__(self, ref: str) -> None:
        super().__init__(1006, f"Employee not found: {ref}")


class PermissionDeniedError(AppError):
    def __init__(self, role: str) -> None:
        super().__init__(1007, f"{role} role required", 403)


# --- 2xxx: Account/Ledger ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: object, available: object) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required}, available {available}",
            422,
        )


class AccountNotFoundError(NotFoundError):
    def __init__(self, ref: str) -> None:
        super().__init__(2002, f"Account not found: {ref}")


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(2003, f"Transaction not found: {transaction_id}")


class InvalidTransactionStateError(InvalidStateError):
    def __init__(self, transaction_id: str, status: str) -> None:
        super().__init__(
            2004, f"Transaction {transaction_id} is {status}, expected pending"
        )


class InvalidAmountError(ValidationError):
    def __init__(self, amount: object) -> None:
        super().__init__(2005, f"Amount must be a positive number, got {amount}")


class TransferPairMismatchError(InvalidStateError):
    def __init__(self, detail: str) -> None:
        super().__init__(2006, f"Transactions do not form a transfer pair: {detail}")


class InvalidTransactionTypeError(ValidationError):
    def __init__(self, value: object) -> None:
        super().__init__(2007, f"Unknown transaction type: {value!r}")


class InvalidPaginationError(ValidationError):
    def __init__(self) -> None:
        super().__init__(2008, "limit must be >= 1 and offset >= 0")


class SelfAwardError(ValidationError):
    def __init__(self) -> None:
        super().__init__(2009, "Managers cannot award coins to themselves")


class InvalidStatusError(ValidationError):
    def __init__(self, field: str, value: object) -> None:
        super().__init__(2010, f"Unknown {field} filter: {value!r}")


class AllotmentExceededError(AppError):
    def __init__(self, allotment: object, used: object) -> None:
        super().__init__(
            2011,
            f"Monthly award allotment exceeded: allotment {allotment}, already awarded {used}",
            422,
        )


# --- 3xxx: Wellness ---

class WellnessSubmissionNotFoundError(NotFoundError):
    def __init__(self, submission_id: str) -> None:
        super().__init__(3001, f"Submission not found: {submission_id}")


class WellnessTaskNotFoundError(NotFoundError):
    def __init__(self, task_id: str) -> None:
        super().__init__(3002, f"Wellness task not found: {task_id}")


class SubmissionNotPendingError(InvalidStateError):
    def __init__(self, submission_id: str) -> None:
        super().__init__(3003, f"Submission {submission_id} is not pending approval")


class RewardLimitReachedError(InvalidStateError):
    def __init__(self) -> None:
        super().__init__(3004, "This task has reached its reward limit")


class InvalidRewardCapError(ValidationError):
    def __init__(self, value: object) -> None:
        super().__init__(3005, f"max_rewarded_users must be at least 1, got {value}")


# --- 4xxx: Store ---

class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str) -> None:
        super().__init__(4001, f"Product not found: {product_id}")


class PurchaseOrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4002, f"Purchase order not found: {order_id}")


class PurchaseOrderNotPendingError(InvalidStateError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4003, f"Purchase order {order_id} is not pending")


# --- 5xxx: Transfer ---

class SelfTransferError(ValidationError):
    def __init__(self) -> None:
        super().__init__(5001, "Cannot transfer coins to yourself")


class TransferLimitExceededError(AppError):
    def __init__(self, limit: object, used: object) -> None:
        super().__init__(
            5002,
            f"Monthly transfer limit exceeded: limit {limit}, already sent {used}",
            422,
        )


class PendingTransferNotFoundError(NotFoundError):
    def __init__(self, transfer_id: str) -> None:
        super().__init__(5003, f"Pending transfer not found: {transfer_id}")


class PendingTransferNotPendingError(InvalidStateError):
    def __init__(self, transfer_id: str) -> None:
        super().__init__(5004, f"Transfer {transfer_id} was already claimed or cancelled")


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InvalidIdentifierError(ValidationError):
    def __init__(self, field: str, value: object) -> None:
        super().__init__(9003, f"Malformed identifier for {field}: {value!r}")
