"""Sign convention — the only place balance direction is decided.

Amounts are stored non-negative; the transaction type says which way the
balance moves when the transaction is posted.
"""

from collections.abc import Iterable
from decimal import Decimal

from src.gc_common.enums import TransactionStatus, TransactionType
from src.gc_ledger.domain.models import LedgerTransaction

CREDIT_TYPES: frozenset[str] = frozenset({
    TransactionType.MANAGER_AWARD.value,
    TransactionType.PEER_TRANSFER_RECEIVED.value,
    TransactionType.WELLNESS_REWARD.value,
    TransactionType.ADJUSTMENT.value,
})

DEBIT_TYPES: frozenset[str] = frozenset({
    TransactionType.PEER_TRANSFER_SENT.value,
    TransactionType.STORE_PURCHASE.value,
})


def _type_value(transaction_type: str | TransactionType) -> str:
    if isinstance(transaction_type, TransactionType):
        return transaction_type.value
    return transaction_type


def signed_amount(transaction_type: str | TransactionType, amount: Decimal) -> Decimal:
    """+amount for credit types, -amount for debit types.

    Raises ValueError for an unknown type so a new enum member cannot
    silently post as zero.
    """
    value = _type_value(transaction_type)
    if value in CREDIT_TYPES:
        return amount
    if value in DEBIT_TYPES:
        return -amount
    raise ValueError(f"Unknown transaction type: {transaction_type}")


def pending_total(transactions: Iterable[LedgerTransaction]) -> Decimal:
    """Signed sum over the pending transactions in ``transactions``."""
    return sum(
        (
            signed_amount(t.transaction_type, t.amount)
            for t in transactions
            if t.status == TransactionStatus.PENDING.value
        ),
        Decimal("0"),
    )


def pending_debits(transactions: Iterable[LedgerTransaction]) -> Decimal:
    """Total amount reserved by pending debit transactions (non-negative)."""
    return sum(
        (
            t.amount
            for t in transactions
            if t.status == TransactionStatus.PENDING.value
            and t.transaction_type in DEBIT_TYPES
        ),
        Decimal("0"),
    )
