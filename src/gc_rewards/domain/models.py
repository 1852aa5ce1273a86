"""Domain models for gc_rewards — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class PendingTransfer:
    """Coins sent to an email that has no employee yet.

    The sender's ``peer_transfer_sent`` leg stays pending (and so reserved)
    until the recipient is provisioned or the sender cancels.
    """

    id: str
    sender_employee_id: str
    recipient_email: str
    amount: Decimal
    message: str | None
    transaction_id: str              # the pending sent leg
    status: str                      # PendingTransferStatus value
    created_at: datetime | None = None
    resolved_at: datetime | None = None
    # Joined context
    sender_account_id: str = ""
    sender_name: str = ""
    sender_email: str = ""
