"""Global enums — must match DB CHECK constraints exactly.

See alembic/versions/003_create_accounts_and_ledger.py and later migrations.
"""

from enum import Enum


class TransactionType(str, Enum):
    MANAGER_AWARD = "manager_award"
    PEER_TRANSFER_SENT = "peer_transfer_sent"
    PEER_TRANSFER_RECEIVED = "peer_transfer_received"
    WELLNESS_REWARD = "wellness_reward"
    STORE_PURCHASE = "store_purchase"
    ADJUSTMENT = "adjustment"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    POSTED = "posted"
    REJECTED = "rejected"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PurchaseOrderStatus(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"


class PendingTransferStatus(str, Enum):
    PENDING = "pending"
    CLAIMED = "claimed"
    CANCELLED = "cancelled"
