"""Initial schema: campaigns, accounts, posts, KPI

Revision ID: 4c1f7d2a9b30
Revises:
Create Date: 2026-10-12 10:14:05.118204

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '4c1f7d2a9b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS "Campaign" (
            "id" TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            "name" TEXT NOT NULL,
            "categories" TEXT[] NOT NULL DEFAULT ARRAY[]::TEXT[],
            "startDate" TIMESTAMP(3),
            "endDate" TIMESTAMP(3),
            "status" TEXT,
            "description" TEXT,
            "targetViewsForFYP" INTEGER,
            "createdAt" TIMESTAMP(3) NOT NULL DEFAULT CURRENT_TIMESTAMP,
            "updatedAt" TIMESTAMP(3) NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS "Account" (
            "id" TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            "name" TEXT NOT NULL,
            "tiktokHandle" TEXT,
            "accountType" TEXT,
            "brand" TEXT,
            "notes" TEXT,
            "createdAt" TIMESTAMP(3) NOT NULL DEFAULT CURRENT_TIMESTAMP,
            "updatedAt" TIMESTAMP(3) NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Link table: A = campaign id, B = account id
    op.execute("""
        CREATE TABLE IF NOT EXISTS "_CampaignToAccount" (
            "A" TEXT NOT NULL REFERENCES "Campaign"("id") ON DELETE CASCADE ON UPDATE CASCADE,
            "B" TEXT NOT NULL REFERENCES "Account"("id") ON DELETE CASCADE ON UPDATE CASCADE,
            CONSTRAINT "_CampaignToAccount_AB_pkey" PRIMARY KEY ("A", "B")
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS "Post" (
            "id" TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            "campaignId" TEXT NOT NULL REFERENCES "Campaign"("id") ON DELETE RESTRICT ON UPDATE CASCADE,
            "accountId" TEXT NOT NULL REFERENCES "Account"("id") ON DELETE RESTRICT ON UPDATE CASCADE,
            "postDate" TIMESTAMP(3),
            "postTitle" TEXT,
            "contentType" TEXT,
            "contentCategory" TEXT,
            "campaignCategory" TEXT,
            "status" TEXT,
            "contentLink" TEXT,
            "yellowCart" BOOLEAN NOT NULL DEFAULT false,
            "totalView" BIGINT NOT NULL DEFAULT 0,
            "totalLike" BIGINT NOT NULL DEFAULT 0,
            "totalComment" BIGINT NOT NULL DEFAULT 0,
            "totalShare" BIGINT NOT NULL DEFAULT 0,
            "totalSaved" BIGINT NOT NULL DEFAULT 0,
            "createdAt" TIMESTAMP(3) NOT NULL DEFAULT CURRENT_TIMESTAMP,
            "updatedAt" TIMESTAMP(3) NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # category is TEXT + CHECK rather than a Postgres enum: asyncpg and PostgREST
    # then pass plain strings both ways
    op.execute("""
        CREATE TABLE IF NOT EXISTS "KPI" (
            "id" TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            "campaignId" TEXT NOT NULL REFERENCES "Campaign"("id") ON DELETE RESTRICT ON UPDATE CASCADE,
            "accountId" TEXT REFERENCES "Account"("id") ON DELETE SET NULL ON UPDATE CASCADE,
            "category" TEXT NOT NULL CHECK ("category" IN (
                'VIEWS', 'QTY_POST', 'FYP_COUNT', 'VIDEO_COUNT', 'GMV_IDR', 'YELLOW_CART'
            )),
            "target" BIGINT NOT NULL DEFAULT 0,
            "actual" BIGINT NOT NULL DEFAULT 0,
            "createdAt" TIMESTAMP(3) NOT NULL DEFAULT CURRENT_TIMESTAMP,
            "updatedAt" TIMESTAMP(3) NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)


def downgrade() -> None:
    op.execute('DROP TABLE IF EXISTS "KPI"')
    op.execute('DROP TABLE IF EXISTS "Post"')
    op.execute('DROP TABLE IF EXISTS "_CampaignToAccount"')
    op.execute('DROP TABLE IF EXISTS "Account"')
    op.execute('DROP TABLE IF EXISTS "Campaign"')
