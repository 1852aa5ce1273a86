"""002: create employees table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE employees (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            email           VARCHAR(255)    NOT NULL,
            name            VARCHAR(200)    NOT NULL,
            is_manager      BOOLEAN         NOT NULL DEFAULT FALSE,
            is_admin        BOOLEAN         NOT NULL DEFAULT FALSE,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_employees_email       UNIQUE (email),
            CONSTRAINT ck_employees_email_lower CHECK (email = LOWER(email))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_employees_updated_at
            BEFORE UPDATE ON employees
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE employees IS 'Staff directory; roles are read from here, never from tokens';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS employees CASCADE;")
