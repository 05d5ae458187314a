"""add daily counter triggers on job_matches

Revision ID: 9f7b3d5e1a62
Revises: 4c1e8a2b9d30
Create Date: 2025-11-20 00:00:00.000000

"""

from __future__ import annotations

from alembic import op

from app.core.limits.triggers import create_statements, drop_statements


revision = "9f7b3d5e1a62"
down_revision = "4c1e8a2b9d30"
branch_labels = None
depends_on = None


def upgrade() -> None:
    dialect_name = op.get_bind().dialect.name
    for statement in create_statements(dialect_name):
        op.execute(statement)


def downgrade() -> None:
    dialect_name = op.get_bind().dialect.name
    for statement in drop_statements(dialect_name):
        op.execute(statement)
