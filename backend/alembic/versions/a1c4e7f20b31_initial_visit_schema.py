"""initial schema: users, companies, customers, branches, operators, applications, audit_logs

Revision ID: a1c4e7f20b31
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, UUID


# revision identifiers, used by Alembic.
revision: str = 'a1c4e7f20b31'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    # ─── users ───
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # ─── companies ───
    op.create_table(
        'companies',
        _id(),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text, nullable=True),
        *_timestamps(),
    )

    # ─── customers / branches ───
    op.create_table(
        'customers',
        _id(),
        sa.Column('company_id', UUID(as_uuid=True), sa.ForeignKey('companies.id'), nullable=False, index=True),
        sa.Column('customer_code', sa.String(50), nullable=True, index=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'customer_code', name='uq_customers_company_code'),
    )
    op.create_table(
        'branches',
        _id(),
        sa.Column('customer_id', UUID(as_uuid=True), sa.ForeignKey('customers.id'), nullable=False, index=True),
        sa.Column('branch_code', sa.String(50), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('customer_id', 'branch_code', name='uq_branches_customer_code'),
    )

    # ─── operators ───
    op.create_table(
        'operators',
        _id(),
        sa.Column('company_id', UUID(as_uuid=True), sa.ForeignKey('companies.id'), nullable=False, index=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # ─── applications (scheduled visits) ───
    op.create_table(
        'applications',
        _id(),
        sa.Column('company_id', UUID(as_uuid=True), sa.ForeignKey('companies.id'), nullable=False, index=True),
        sa.Column('customer_id', UUID(as_uuid=True), sa.ForeignKey('customers.id'), nullable=False, index=True),
        sa.Column('branch_id', UUID(as_uuid=True), sa.ForeignKey('branches.id'), nullable=False, index=True),
        sa.Column('operator_id', UUID(as_uuid=True), sa.ForeignKey('operators.id'), nullable=True, index=True),
        sa.Column('application_code', sa.String(20), nullable=False, unique=True),
        sa.Column('scheduled_date', sa.Date, nullable=False, index=True),
        sa.Column('scheduled_time', sa.Time, nullable=False),
        sa.Column('service_types', ARRAY(sa.String(100)), nullable=False, server_default='{}'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        *_timestamps(),
    )

    # ─── audit_logs ───
    op.create_table(
        'audit_logs',
        _id(),
        sa.Column('company_id', UUID(as_uuid=True), sa.ForeignKey('companies.id'), nullable=True, index=True),
        sa.Column('actor_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('actor_email', sa.String(255), nullable=True),
        sa.Column('action', sa.String(100), nullable=False, index=True),
        sa.Column('entity_type', sa.String(100), nullable=False, index=True),
        sa.Column('entity_id', UUID(as_uuid=True), nullable=True, index=True),
        sa.Column('after_state', sa.Text, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('applications')
    op.drop_table('operators')
    op.drop_table('branches')
    op.drop_table('customers')
    op.drop_table('companies')
    op.drop_table('users')
