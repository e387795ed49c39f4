"""初始化索引同步相关表

Revision ID: 0f3c2a9b7d41
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0f3c2a9b7d41"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "google_search_console_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.String(length=255), nullable=False),
        sa.Column("client_secret", sa.String(length=255), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(), nullable=True),
        sa.Column("scope", sa.Text(), nullable=True),
        sa.Column("property_url", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("auto_submit_on_publish", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("auto_submit_sitemap", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_google_search_console_settings_is_active",
        "google_search_console_settings",
        ["is_active"],
    )

    op.create_table(
        "seo_indexing_status",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("url", sa.String(length=512), nullable=False),
        sa.Column("page_type", sa.String(length=32), nullable=True),
        sa.Column("reference_id", sa.String(length=64), nullable=True),
        sa.Column("indexing_status", sa.String(length=64), nullable=True),
        sa.Column("coverage_state", sa.String(length=255), nullable=True),
        sa.Column("last_crawled", sa.DateTime(), nullable=True),
        sa.Column("errors", sa.JSON(), nullable=True),
        sa.Column("warnings", sa.JSON(), nullable=True),
        sa.Column("last_checked", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("url", name="uq_seo_indexing_status_url"),
    )
    op.create_index("ix_seo_indexing_status_last_checked", "seo_indexing_status", ["last_checked"])

    op.create_table(
        "blog_posts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_blog_posts_slug", "blog_posts", ["slug"], unique=True)
    op.create_index("ix_blog_posts_status", "blog_posts", ["status"])

    op.create_table(
        "portfolio_projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_portfolio_projects_slug", "portfolio_projects", ["slug"], unique=True)
    op.create_index("ix_portfolio_projects_status", "portfolio_projects", ["status"])


def downgrade() -> None:
    op.drop_index("ix_portfolio_projects_status", table_name="portfolio_projects")
    op.drop_index("ix_portfolio_projects_slug", table_name="portfolio_projects")
    op.drop_table("portfolio_projects")
    op.drop_index("ix_blog_posts_status", table_name="blog_posts")
    op.drop_index("ix_blog_posts_slug", table_name="blog_posts")
    op.drop_table("blog_posts")
    op.drop_index("ix_seo_indexing_status_last_checked", table_name="seo_indexing_status")
    op.drop_table("seo_indexing_status")
    op.drop_index("ix_google_search_console_settings_is_active", table_name="google_search_console_settings")
    op.drop_table("google_search_console_settings")
