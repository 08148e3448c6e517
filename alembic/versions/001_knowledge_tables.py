"""Create pgvector extension, resources and embeddings tables.

Revision ID: 001_knowledge_tables
Revises:
Create Date: 2026-10-18

Embeddings cascade-delete with their resource and are indexed with HNSW on
cosine distance for similarity search.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_knowledge_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIMENSIONS = 1536


def upgrade() -> None:
    # Enable pgvector extension (requires superuser or CREATE privilege)
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "resources",
        sa.Column("id", sa.String(191), primary_key=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.execute(f"""
        CREATE TABLE embeddings (
            id VARCHAR(191) PRIMARY KEY,
            resource_id VARCHAR(191) NOT NULL
                REFERENCES resources(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            embedding vector({EMBEDDING_DIMENSIONS}) NOT NULL
        )
    """)

    op.execute("""
        CREATE INDEX embedding_index
        ON embeddings
        USING hnsw (embedding vector_cosine_ops)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS embeddings")
    op.drop_table("resources")
    # Don't drop the vector extension -- other tables may use it
