"""Create relay_records pending/done buffer

Revision ID: 0001_create_relay_records
Revises:
Create Date: 2026-10-19

Adds:
- relay_records: records captured from the OPC facade, waiting for (or done
  with) delivery to Fuse
- Partial index serving the oldest-pending lookup and the pending count
"""

from alembic import op

# revision identifiers, used by Alembic
revision = "0001_create_relay_records"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
        CREATE TABLE relay_records (
            id          BIGSERIAL PRIMARY KEY,
            captured_at TIMESTAMPTZ NOT NULL,
            payload     JSONB NOT NULL,
            status      TEXT NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'done')),
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
    """
    )

    # Oldest-pending drain order and pending count only ever touch pending rows
    op.execute(
        """
        CREATE INDEX ix_relay_records_pending_captured
            ON relay_records (captured_at, id)
            WHERE status = 'pending';
    """
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_relay_records_pending_captured;")
    op.execute("DROP TABLE IF EXISTS relay_records;")
