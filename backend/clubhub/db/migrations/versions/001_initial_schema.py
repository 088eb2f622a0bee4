"""Initial schema migration

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLES = ('president', 'cpd_head', 'cbd_head', 'cyber_head', 'dev_head', 'data_science_head', 'member')
USER_STATUSES = ('active', 'inactive', 'banned', 'withdrawn')
DIVISION_KINDS = ('cpd', 'cbd', 'cyber', 'dev', 'data_science')


def upgrade() -> None:
    # Users table (division_id FK added once divisions exists)
    op.create_table(
        'users',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('role', sa.Enum(*ROLES, name='role'), nullable=False, server_default='member'),
        sa.Column('status', sa.Enum(*USER_STATUSES, name='userstatus'), nullable=False, server_default='active'),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('division_id', sa.String(15), nullable=True),
        sa.Column('withdrawal_reason', sa.Text(), nullable=True),
        sa.Column('withdrawn_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('withdrawn_by_id', sa.String(15), nullable=True),
        sa.Column('previous_division_id', sa.String(15), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.CheckConstraint(
            "status != 'withdrawn' OR division_id IS NULL",
            name='ck_users_withdrawn_has_no_division'
        ),
        sa.CheckConstraint(
            "(status = 'withdrawn' AND withdrawal_reason IS NOT NULL) "
            "OR (status != 'withdrawn' AND withdrawal_reason IS NULL)",
            name='ck_users_withdrawal_metadata'
        ),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_status', 'users', ['status'])
    op.create_index('ix_users_division_id', 'users', ['division_id'])
    op.create_index('ix_users_previous_division_id', 'users', ['previous_division_id'])
    # Only one president
    op.create_index(
        'uq_users_single_president', 'users', ['role'],
        unique=True,
        postgresql_where=sa.text("role = 'president'"),
        sqlite_where=sa.text("role = 'president'"),
    )

    # Divisions table
    op.create_table(
        'divisions',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('kind', sa.Enum(*DIVISION_KINDS, name='divisionkind'), nullable=True),
        sa.Column('head_id', sa.String(15), sa.ForeignKey('users.id', ondelete='SET NULL', name='fk_divisions_head_id_users'), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('name', name='uq_divisions_name'),
        sa.UniqueConstraint('head_id', name='uq_divisions_head_id'),
    )

    # Add foreign key for division_id in users
    op.create_foreign_key(
        'fk_users_division_id_divisions',
        'users', 'divisions',
        ['division_id'], ['id'],
        ondelete='SET NULL'
    )

    # Groups table
    op.create_table(
        'groups',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('division_id', sa.String(15), sa.ForeignKey('divisions.id', ondelete='CASCADE', name='fk_groups_division_id_divisions'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.String(15), nullable=True),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('division_id', 'name', name='uq_groups_division_name'),
    )
    op.create_index('ix_groups_division_id', 'groups', ['division_id'])

    # Group memberships table
    op.create_table(
        'group_memberships',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('user_id', sa.String(15), sa.ForeignKey('users.id', ondelete='CASCADE', name='fk_group_memberships_user_id_users'), nullable=False),
        sa.Column('group_id', sa.String(15), sa.ForeignKey('groups.id', ondelete='CASCADE', name='fk_group_memberships_group_id_groups'), nullable=False),
        sa.Column('removed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('removal_reason', sa.Text(), nullable=True),
        sa.Column('removed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('removed_by_id', sa.String(15), nullable=True),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'group_id', name='uq_group_memberships_user_group'),
        sa.CheckConstraint(
            "(removed AND removal_reason IS NOT NULL) OR (NOT removed AND removal_reason IS NULL)",
            name='ck_group_memberships_removal_metadata'
        ),
    )
    op.create_index('ix_group_memberships_user_id', 'group_memberships', ['user_id'])
    op.create_index('ix_group_memberships_group_id', 'group_memberships', ['group_id'])

    # Audit logs table
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('action', sa.String(64), nullable=False),
        sa.Column('actor_id', sa.String(15), nullable=False),
        sa.Column('division_id', sa.String(15), nullable=True),
        sa.Column('subject_id', sa.String(15), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'])
    op.create_index('ix_audit_logs_division_id', 'audit_logs', ['division_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('group_memberships')
    op.drop_table('groups')
    op.drop_constraint('fk_users_division_id_divisions', 'users', type_='foreignkey')
    op.drop_table('divisions')
    op.drop_index('uq_users_single_president', table_name='users')
    op.drop_table('users')
    sa.Enum(name='divisionkind').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='userstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='role').drop(op.get_bind(), checkfirst=True)
