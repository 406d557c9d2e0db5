"""initial schema: users, transactions, goals, daily logs, budgets, notifications

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String, nullable=False),
        sa.Column('display_name', sa.String, nullable=True),
        sa.Column('timezone', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'transactions',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.Uuid(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(16), nullable=False, server_default='expense'),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('category', sa.String(100), nullable=False, server_default='Other'),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('date', sa.DateTime, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_transactions_user_type_date', 'transactions', ['user_id', 'type', 'date'])

    op.create_table(
        'goals',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.Uuid(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('goal_name', sa.String(120), nullable=False),
        sa.Column('target_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('saved_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('daily_limit', sa.Numeric(14, 2), nullable=True),
        sa.Column('start_date', sa.Date, nullable=True),
        sa.Column('timezone', sa.String(64), nullable=True),
        sa.Column('goal_status', sa.String(16), nullable=False, server_default='active'),
        sa.Column('streak_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('grace_days_used', sa.Integer, nullable=False, server_default='0'),
        sa.Column('abandoned_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_goals_user_status', 'goals', ['user_id', 'goal_status'])

    op.create_table(
        'goal_daily_logs',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('goal_id', sa.Uuid(as_uuid=True), sa.ForeignKey('goals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('log_date', sa.Date, nullable=False),
        sa.Column('date', sa.DateTime, nullable=False),
        sa.Column('spent_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('saved_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('comment', sa.String(255), nullable=True),
        sa.Column('opening_saved_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('opening_streak_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('opening_grace_days_used', sa.Integer, nullable=False, server_default='0'),
        sa.UniqueConstraint('goal_id', 'log_date', name='uq_goal_daily_logs_goal_date'),
    )
    op.create_index('ix_goal_daily_logs_goal_id', 'goal_daily_logs', ['goal_id'])

    op.create_table(
        'budgets',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.Uuid(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('period', sa.String(16), nullable=False, server_default='monthly'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.Uuid(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('goal_id', sa.Uuid(as_uuid=True), sa.ForeignKey('goals.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String, nullable=False),
        sa.Column('message', sa.String, nullable=False),
        sa.Column('type', sa.String, nullable=False),
        sa.Column('status', sa.String, nullable=False),
        sa.Column('is_read', sa.Boolean, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

def downgrade():
    op.drop_table('notifications')
    op.drop_table('budgets')
    op.drop_index('ix_goal_daily_logs_goal_id', table_name='goal_daily_logs')
    op.drop_table('goal_daily_logs')
    op.drop_index('ix_goals_user_status', table_name='goals')
    op.drop_table('goals')
    op.drop_index('ix_transactions_user_type_date', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
