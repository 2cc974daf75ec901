"""FieldOps schema: users, tasks, assignments, payments, payroll slips, expenses

Revision ID: 20261019_0900_fieldops_payroll_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration creates:
- users: login accounts that double as employees, with pay configuration
- tasks / task_assignees / task_payments: work records, per-worker rate
  overrides and the customer payment ledger
- payroll_slips: one snapshot per employee per month
- expenses: cash-flow ledger; payroll rows are linked 1:1 to a slip

Enum-like columns are stored as plain strings (values, not names).
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '20261019_0900_fieldops_payroll_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create FieldOps tables."""

    connection = op.get_bind()
    inspector = sa.inspect(connection)
    existing_tables = inspector.get_table_names()

    # ===========================================
    # USERS
    # ===========================================
    if 'users' not in existing_tables:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('username', sa.String(64), nullable=False),
            sa.Column('display_name', sa.String(128), nullable=True),
            sa.Column('email', sa.String(255), nullable=True),
            sa.Column('role', sa.String(16), nullable=False, server_default='user'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('pay_type', sa.String(16), nullable=False, server_default='other'),
            sa.Column('default_rate_per_rai', sa.Numeric(12, 2), nullable=True),
            sa.Column('default_repair_rate', sa.Numeric(12, 2), nullable=True),
            sa.Column('default_daily_rate', sa.Numeric(12, 2), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint('id', name='pk_users'),
        )
        op.create_index('ix_users_username', 'users', ['username'], unique=True)

    # ===========================================
    # TASKS
    # ===========================================
    if 'tasks' not in existing_tables:
        op.create_table(
            'tasks',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('title', sa.String(255), nullable=False),
            sa.Column('job_type', sa.String(16), nullable=False),
            sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=True),
            sa.Column('area', sa.Numeric(12, 2), nullable=True),
            sa.Column('total_amount', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('paid_amount', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('note', sa.Text(), nullable=True),
            sa.Column('created_by', sa.Integer(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint('id', name='pk_tasks'),
            sa.ForeignKeyConstraint(
                ['created_by'], ['users.id'],
                name='fk_tasks_created_by_users', ondelete='SET NULL',
            ),
        )
        op.create_index('ix_tasks_job_type', 'tasks', ['job_type'])
        op.create_index('ix_tasks_start_date', 'tasks', ['start_date'])

    if 'task_assignees' not in existing_tables:
        op.create_table(
            'task_assignees',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('task_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('use_default', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('rate_per_rai', sa.Numeric(12, 2), nullable=True),
            sa.Column('repair_rate', sa.Numeric(12, 2), nullable=True),
            sa.Column('daily_rate', sa.Numeric(12, 2), nullable=True),
            sa.PrimaryKeyConstraint('id', name='pk_task_assignees'),
            sa.ForeignKeyConstraint(
                ['task_id'], ['tasks.id'],
                name='fk_task_assignees_task_id_tasks', ondelete='CASCADE',
            ),
            sa.ForeignKeyConstraint(
                ['user_id'], ['users.id'],
                name='fk_task_assignees_user_id_users', ondelete='CASCADE',
            ),
            sa.UniqueConstraint('task_id', 'user_id', name='uq_task_assignee_task_user'),
        )
        op.create_index('ix_task_assignees_task_id', 'task_assignees', ['task_id'])
        op.create_index('ix_task_assignees_user_id', 'task_assignees', ['user_id'])

    if 'task_payments' not in existing_tables:
        op.create_table(
            'task_payments',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('task_id', sa.Integer(), nullable=False),
            sa.Column('amount', sa.Integer(), nullable=False),
            sa.Column('note', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.PrimaryKeyConstraint('id', name='pk_task_payments'),
            sa.ForeignKeyConstraint(
                ['task_id'], ['tasks.id'],
                name='fk_task_payments_task_id_tasks', ondelete='CASCADE',
            ),
        )
        op.create_index('ix_task_payments_task_id', 'task_payments', ['task_id'])

    # ===========================================
    # PAYROLL SLIPS
    # ===========================================
    if 'payroll_slips' not in existing_tables:
        op.create_table(
            'payroll_slips',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('month', sa.String(7), nullable=False),
            sa.Column('slip_no', sa.String(32), nullable=True),
            sa.Column('rai_qty', sa.Numeric(12, 2), nullable=False, server_default='0'),
            sa.Column('rai_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
            sa.Column('repair_days', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('repair_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
            sa.Column('daily_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
            sa.Column('gross_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
            sa.Column('deduction', sa.Numeric(15, 2), nullable=False, server_default='0',
                      comment='Manual deduction (advances drawn during the month)'),
            sa.Column('net_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
            sa.Column('details', sa.JSON(), nullable=False),
            sa.Column('note', sa.Text(), nullable=True),
            sa.Column('status', sa.String(16), nullable=False, server_default='Unpaid'),
            sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_by', sa.Integer(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint('id', name='pk_payroll_slips'),
            sa.ForeignKeyConstraint(
                ['user_id'], ['users.id'],
                name='fk_payroll_slips_user_id_users', ondelete='CASCADE',
            ),
            sa.ForeignKeyConstraint(
                ['created_by'], ['users.id'],
                name='fk_payroll_slips_created_by_users', ondelete='SET NULL',
            ),
            sa.UniqueConstraint('user_id', 'month', name='uq_payroll_slip_user_month'),
            sa.UniqueConstraint('slip_no', name='uq_payroll_slips_slip_no'),
        )
        op.create_index('ix_payroll_slips_user_id', 'payroll_slips', ['user_id'])
        op.create_index('ix_payroll_slips_month', 'payroll_slips', ['month'])
        op.create_index('ix_payroll_slips_status', 'payroll_slips', ['status'])

    # ===========================================
    # EXPENSES
    # ===========================================
    if 'expenses' not in existing_tables:
        op.create_table(
            'expenses',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('title', sa.String(255), nullable=False),
            sa.Column('type', sa.String(16), nullable=False),
            sa.Column('amount', sa.Numeric(15, 2), nullable=False),
            sa.Column('job_note', sa.Text(), nullable=True),
            sa.Column('qty_note', sa.Text(), nullable=True),
            sa.Column('work_date', sa.Date(), nullable=False),
            sa.Column('payroll_slip_id', sa.Integer(), nullable=True),
            sa.Column('created_by', sa.Integer(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint('id', name='pk_expenses'),
            sa.ForeignKeyConstraint(
                ['payroll_slip_id'], ['payroll_slips.id'],
                name='fk_expenses_payroll_slip_id_payroll_slips', ondelete='CASCADE',
            ),
            sa.ForeignKeyConstraint(
                ['created_by'], ['users.id'],
                name='fk_expenses_created_by_users', ondelete='SET NULL',
            ),
            sa.UniqueConstraint('payroll_slip_id', name='uq_expenses_payroll_slip_id'),
        )
        op.create_index('ix_expenses_type', 'expenses', ['type'])
        op.create_index('ix_expenses_work_date', 'expenses', ['work_date'])


def downgrade() -> None:
    """Drop FieldOps tables."""
    op.drop_table('expenses')
    op.drop_table('payroll_slips')
    op.drop_table('task_payments')
    op.drop_table('task_assignees')
    op.drop_table('tasks')
    op.drop_table('users')
