"""005: create store_products and store_purchase_orders tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE store_products (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            name            VARCHAR(200)    NOT NULL,
            description     VARCHAR(2000),
            price_guincoin  NUMERIC(14, 2)  NOT NULL,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_store_products_price_gt_0 CHECK (price_guincoin > 0)
        );
    """)
    op.execute("""
        CREATE TABLE store_purchase_orders (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id         UUID            NOT NULL REFERENCES employees (id),
            product_id          UUID            NOT NULL REFERENCES store_products (id),
            transaction_id      UUID            REFERENCES ledger_transactions (id),
            status              VARCHAR(10)     NOT NULL DEFAULT 'pending',
            fulfilled_by_id     UUID            REFERENCES employees (id),
            fulfilled_at        TIMESTAMPTZ,
            tracking_number     VARCHAR(200),
            notes               VARCHAR(2000),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_store_orders_status CHECK (status IN ('pending', 'fulfilled'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_store_orders_pending
        ON store_purchase_orders (created_at)
        WHERE status = 'pending';
    """)
    op.execute("CREATE INDEX idx_store_orders_employee ON store_purchase_orders (employee_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS store_purchase_orders CASCADE;")
    op.execute("DROP TABLE IF EXISTS store_products CASCADE;")
