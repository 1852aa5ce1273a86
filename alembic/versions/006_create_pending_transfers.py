"""006: create pending_transfers table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE pending_transfers (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            sender_employee_id  UUID            NOT NULL REFERENCES employees (id),
            recipient_email     VARCHAR(255)    NOT NULL,
            amount              NUMERIC(14, 2)  NOT NULL,
            message             VARCHAR(500),
            transaction_id      UUID            NOT NULL REFERENCES ledger_transactions (id),
            status              VARCHAR(10)     NOT NULL DEFAULT 'pending',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            resolved_at         TIMESTAMPTZ,
            CONSTRAINT uq_pending_transfers_transaction UNIQUE (transaction_id),
            CONSTRAINT ck_pending_transfers_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_pending_transfers_email_lower CHECK (recipient_email = LOWER(recipient_email)),
            CONSTRAINT ck_pending_transfers_status CHECK (status IN ('pending', 'claimed', 'cancelled')),
            CONSTRAINT ck_pending_transfers_resolved_at CHECK ((status = 'pending') = (resolved_at IS NULL))
        );
    """)
    op.execute("""
        CREATE INDEX idx_pending_transfers_email
        ON pending_transfers (recipient_email)
        WHERE status = 'pending';
    """)
    op.execute(
        "CREATE INDEX idx_pending_transfers_sender "
        "ON pending_transfers (sender_employee_id, created_at DESC);"
    )
    op.execute("""
        CREATE INDEX idx_ledger_txn_source_type_time
        ON ledger_transactions (source_employee_id, transaction_type, created_at DESC)
        WHERE source_employee_id IS NOT NULL;
    """)


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_ledger_txn_source_type_time;")
    op.execute("DROP TABLE IF EXISTS pending_transfers CASCADE;")
