"""003: create accounts and ledger_transactions tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id     UUID            NOT NULL REFERENCES employees (id),
            balance         NUMERIC(14, 2)  NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accounts_employee_id UNIQUE (employee_id)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE accounts IS 'One Guincoin balance per employee; mutated only by posting';")

    op.execute("""
        CREATE TABLE ledger_transactions (
            id                      UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            account_id              UUID            NOT NULL REFERENCES accounts (id),
            transaction_type        VARCHAR(30)     NOT NULL,
            amount                  NUMERIC(14, 2)  NOT NULL,
            status                  VARCHAR(10)     NOT NULL DEFAULT 'pending',
            description             VARCHAR(500),
            source_employee_id      UUID            REFERENCES employees (id),
            target_employee_id      UUID            REFERENCES employees (id),
            wellness_submission_id  UUID,
            rejection_reason        VARCHAR(500),
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            posted_at               TIMESTAMPTZ,
            rejected_at             TIMESTAMPTZ,
            CONSTRAINT ck_ledger_txn_type CHECK (
                transaction_type IN (
                    'manager_award',
                    'peer_transfer_sent', 'peer_transfer_received',
                    'wellness_reward', 'store_purchase', 'adjustment'
                )
            ),
            CONSTRAINT ck_ledger_txn_status CHECK (status IN ('pending', 'posted', 'rejected')),
            CONSTRAINT ck_ledger_txn_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_ledger_txn_posted_at CHECK ((status = 'posted') = (posted_at IS NOT NULL)),
            CONSTRAINT ck_ledger_txn_rejected_at CHECK ((status = 'rejected') = (rejected_at IS NOT NULL))
        );
    """)
    op.execute(
        "CREATE INDEX idx_ledger_txn_account_time "
        "ON ledger_transactions (account_id, created_at DESC);"
    )
    op.execute("""
        CREATE INDEX idx_ledger_txn_account_pending
        ON ledger_transactions (account_id)
        WHERE status = 'pending';
    """)
    op.execute("""
        CREATE INDEX idx_ledger_txn_submission
        ON ledger_transactions (wellness_submission_id)
        WHERE wellness_submission_id IS NOT NULL;
    """)
    op.execute("COMMENT ON TABLE ledger_transactions IS 'Append-only ledger; status moves pending -> posted|rejected once';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_transactions CASCADE;")
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
