"""Initial migration - create users and students

Revision ID: 001_initial
Revises: None
Create Date: 2025-03-10

Creates the two independent tables of the records service:
- users: dashboard accounts, unique by email
- students: student records keyed by the client-supplied idno

There are no foreign keys between them; a student's photo is a filename in
the upload directory, not a row.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Users Table ───────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True, unique=True),
        sa.Column('password', sa.Text(), nullable=True),
    )

    # ── Students Table ────────────────────────────────────────
    op.create_table(
        'students',
        sa.Column('idno', sa.Text(), primary_key=True),
        sa.Column('lastname', sa.Text(), nullable=False),
        sa.Column('firstname', sa.Text(), nullable=False),
        sa.Column('course', sa.Text(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('photo', sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('students')
    op.drop_table('users')
