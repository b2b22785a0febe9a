"""Add scan indexes and unique KPI scope index

Revision ID: 8e25b0c6d4f1
Revises: 4c1f7d2a9b30
Create Date: 2026-10-12 10:31:47.902311

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '8e25b0c6d4f1'
down_revision: Union[str, Sequence[str], None] = '4c1f7d2a9b30'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Paginated scans filter posts by campaign or campaign + account, ordered by id
    op.execute('CREATE INDEX IF NOT EXISTS "Post_campaignId_accountId_idx" ON "Post" ("campaignId", "accountId", "id")')
    op.execute('CREATE INDEX IF NOT EXISTS "Post_accountId_idx" ON "Post" ("accountId")')
    op.execute('CREATE INDEX IF NOT EXISTS "KPI_campaignId_accountId_idx" ON "KPI" ("campaignId", "accountId")')
    op.execute('CREATE INDEX IF NOT EXISTS "_CampaignToAccount_B_index" ON "_CampaignToAccount" ("B")')

    # One row per (campaign, account, category); campaign-level rows have accountId NULL
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS "KPI_scope_category_key"
        ON "KPI" ("campaignId", COALESCE("accountId", ''), "category")
    """)


def downgrade() -> None:
    op.execute('DROP INDEX IF EXISTS "KPI_scope_category_key"')
    op.execute('DROP INDEX IF EXISTS "_CampaignToAccount_B_index"')
    op.execute('DROP INDEX IF EXISTS "KPI_campaignId_accountId_idx"')
    op.execute('DROP INDEX IF EXISTS "Post_accountId_idx"')
    op.execute('DROP INDEX IF EXISTS "Post_campaignId_accountId_idx"')
