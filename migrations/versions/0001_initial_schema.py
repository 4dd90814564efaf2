"""Initial schema: clinics, users, goals, monthly audits and their children,
invitations, password reset tokens and the activity log

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def _audit_fk():
    return sa.Column('monthly_audit_id', sa.Integer(),
                     sa.ForeignKey('monthly_audits.id', ondelete='CASCADE'), nullable=False)


def upgrade():
    op.create_table(
        'clinics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('location', sa.String(255)),
        *_timestamps()
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('clinic_id', sa.Integer(), sa.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        sa.Column('role', sa.String(20), nullable=False, server_default='member'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime()),
        *_timestamps(),
        sa.CheckConstraint("role IN ('admin', 'member')", name='ck_users_role')
    )
    op.create_index('ix_users_clinic_id', 'users', ['clinic_id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'global_goals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('clinic_id', sa.Integer(), sa.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('revenue_goal', sa.Numeric(12, 2), server_default='100000'),
        sa.Column('profit_margin_goal', sa.Numeric(5, 2), server_default='30'),
        sa.Column('capacity_goal', sa.Numeric(5, 2), server_default='80'),
        *_timestamps()
    )
    op.create_index('ix_global_goals_clinic_id', 'global_goals', ['clinic_id'], unique=True)

    op.create_table(
        'monthly_audits',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('clinic_id', sa.Integer(), sa.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('audit_month', sa.Date(), nullable=False),
        sa.Column('clinic_name', sa.String(255)),
        sa.Column('revenue', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('operating_expenses', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('cogs', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('marketing_spend', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('website_visits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('website_conversion_rate', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('new_client_visits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('clients_converting_to_treatment', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_clients', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_appointments', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        *_timestamps(),
        sa.UniqueConstraint('clinic_id', 'audit_month', name='uq_monthly_audits_clinic_month')
    )
    op.create_index('ix_monthly_audits_clinic_id', 'monthly_audits', ['clinic_id'])
    op.create_index('ix_monthly_audits_audit_month', 'monthly_audits', ['audit_month'])
    op.create_index('ix_monthly_audits_created_by', 'monthly_audits', ['created_by'])

    op.create_table(
        'payroll_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        _audit_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        *_timestamps()
    )

    op.create_table(
        'additional_expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        _audit_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text()),
        *_timestamps()
    )

    op.create_table(
        'services',
        sa.Column('id', sa.Integer(), primary_key=True),
        _audit_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('provider_hours', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('booked_hours', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('revenue', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('commission', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('allocated_expenses', sa.Numeric(12, 2), nullable=False, server_default='0'),
        *_timestamps()
    )

    for table in ('payroll_items', 'additional_expenses', 'services'):
        op.create_index(f'ix_{table}_monthly_audit_id', table, ['monthly_audit_id'])

    op.create_table(
        'invitations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('clinic_id', sa.Integer(), sa.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('invited_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('token', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('accepted_at', sa.DateTime()),
        sa.CheckConstraint("role IN ('admin', 'member')", name='ck_invitations_role'),
        sa.CheckConstraint("status IN ('pending', 'accepted', 'expired')", name='ck_invitations_status')
    )
    op.create_index('ix_invitations_email', 'invitations', ['email'])
    op.create_index('ix_invitations_clinic_id', 'invitations', ['clinic_id'])
    op.create_index('ix_invitations_token', 'invitations', ['token'], unique=True)

    op.create_table(
        'password_reset_tokens',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(255), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now())
    )
    op.create_index('ix_password_reset_tokens_user_id', 'password_reset_tokens', ['user_id'])
    op.create_index('ix_password_reset_tokens_token', 'password_reset_tokens', ['token'], unique=True)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('clinic_id', sa.Integer(), sa.ForeignKey('clinics.id', ondelete='CASCADE')),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(100)),
        sa.Column('entity_id', sa.String(64)),
        sa.Column('details', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now())
    )
    op.create_index('ix_audit_logs_clinic_id', 'audit_logs', ['clinic_id'])
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('password_reset_tokens')
    op.drop_table('invitations')
    op.drop_table('services')
    op.drop_table('additional_expenses')
    op.drop_table('payroll_items')
    op.drop_table('monthly_audits')
    op.drop_table('global_goals')
    op.drop_table('users')
    op.drop_table('clinics')
