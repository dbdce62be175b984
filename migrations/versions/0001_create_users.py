"""create users entitlement table

Same shape as bassnote.models.UserEntitlement; init_db() creates it too,
so this is a no-op where the table already exists.

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_create_users"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    if sa.inspect(bind).has_table("users"):
        return
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("is_pro", sa.Boolean(), nullable=False, server_default=sa.false()),
    )


def downgrade() -> None:
    # Entitlements are never dropped automatically.
    pass
