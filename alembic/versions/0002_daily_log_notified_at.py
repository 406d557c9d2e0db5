"""daily logs: notified_at claim column

Revision ID: 0002_daily_log_notified_at
Revises: 0001_initial_schema
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0002_daily_log_notified_at'
down_revision = '0001_initial_schema'
branch_labels = None
depends_on = None

def upgrade():
    with op.batch_alter_table('goal_daily_logs') as batch_op:
        batch_op.add_column(sa.Column('notified_at', sa.DateTime, nullable=True))

def downgrade():
    with op.batch_alter_table('goal_daily_logs') as batch_op:
        batch_op.drop_column('notified_at')
