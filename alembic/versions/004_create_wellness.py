"""004: create wellness_tasks and wellness_submissions tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wellness_tasks (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            name                VARCHAR(200)    NOT NULL,
            description         VARCHAR(2000),
            coin_value          NUMERIC(14, 2)  NOT NULL,
            max_rewarded_users  INTEGER,
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wellness_tasks_coin_value_gt_0 CHECK (coin_value > 0),
            CONSTRAINT ck_wellness_tasks_cap_gte_1 CHECK (
                max_rewarded_users IS NULL OR max_rewarded_users >= 1
            )
        );
    """)
    op.execute("""
        CREATE TABLE wellness_submissions (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id         UUID            NOT NULL REFERENCES employees (id),
            wellness_task_id    UUID            NOT NULL REFERENCES wellness_tasks (id),
            status              VARCHAR(10)     NOT NULL DEFAULT 'pending',
            rejection_reason    VARCHAR(500),
            reviewed_by_id      UUID            REFERENCES employees (id),
            reviewed_at         TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wellness_submissions_status CHECK (
                status IN ('pending', 'approved', 'rejected')
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_wellness_submissions_pending
        ON wellness_submissions (created_at)
        WHERE status = 'pending';
    """)
    op.execute("""
        CREATE INDEX idx_wellness_submissions_task_status
        ON wellness_submissions (wellness_task_id, status);
    """)
    op.execute("""
        ALTER TABLE ledger_transactions
        ADD CONSTRAINT fk_ledger_txn_wellness_submission
        FOREIGN KEY (wellness_submission_id) REFERENCES wellness_submissions (id);
    """)


def downgrade() -> None:
    op.execute(
        "ALTER TABLE ledger_transactions "
        "DROP CONSTRAINT IF EXISTS fk_ledger_txn_wellness_submission;"
    )
    op.execute("DROP TABLE IF EXISTS wellness_submissions CASCADE;")
    op.execute("DROP TABLE IF EXISTS wellness_tasks CASCADE;")
