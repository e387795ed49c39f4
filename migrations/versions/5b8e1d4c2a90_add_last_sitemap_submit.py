"""凭据表增加最近一次站点地图提交时间

Revision ID: 5b8e1d4c2a90
Revises: 0f3c2a9b7d41
Create Date: 2026-10-19 12:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5b8e1d4c2a90"
down_revision = "0f3c2a9b7d41"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("google_search_console_settings") as batch_op:
        batch_op.add_column(sa.Column("last_sitemap_submit", sa.DateTime(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("google_search_console_settings") as batch_op:
        batch_op.drop_column("last_sitemap_submit")
