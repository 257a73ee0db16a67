"""Initial TaxBridge schema

Revision ID: 20261018_0900_initial_taxbridge
Revises:
Create Date: 2026-10-18 09:00:00.000000

This migration creates the tax engine tables:
- employees: Benefit flags and monthly salary per employee
- payroll_records: One row per employee and payroll period
- payroll_schedules: Workflow status per entity and period
- paye_remittances: PAYE due by the 10th of the following month
- employment_deductions: Annual reliefs declared by individuals
- subscriptions / payments: Plans, billing and upgrade bonus days

Enum types store member names, matching SQLAlchemy's default Enum mapping.
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '20261018_0900_initial_taxbridge'
down_revision = None
branch_labels = None
depends_on = None


ACCOUNT_TYPE = sa.Enum('INDIVIDUAL', 'BUSINESS', 'COMPANY', name='accounttype')
PAYROLL_STATUS = sa.Enum('DRAFT', 'APPROVED', 'SUBMITTED', name='payrollstatus')
REMITTANCE_STATUS = sa.Enum('PENDING', 'REMITTED', 'OVERDUE', 'COMPLIANT', name='remittancestatus')
DEDUCTION_SOURCE = sa.Enum('PAYSLIP', 'EMPLOYER_STATEMENT', 'MANUAL', 'OTHER', name='deductionsource')
PLAN_TIER = sa.Enum('FREE', 'STARTER', 'STANDARD', 'PREMIUM', name='plantier')
BILLING_CYCLE = sa.Enum('MONTHLY', 'YEARLY', name='billingcycle')
SUBSCRIPTION_STATUS = sa.Enum('ACTIVE', 'CANCELLED', 'EXPIRED', 'TRIAL', name='subscriptionstatus')
PAYMENT_STATUS = sa.Enum('PENDING', 'COMPLETED', 'FAILED', 'CANCELLED', name='paymentstatus')
PAYMENT_METHOD = sa.Enum('PAYSTACK', 'MONNIFY', 'BANK_TRANSFER', name='paymentmethod')


def _money(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=15, scale=2), nullable=nullable, server_default='0')


def _base_columns() -> list:
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create TaxBridge tables."""

    # ===========================================
    # PAYROLL
    # ===========================================
    op.create_table(
        'employees',
        *_base_columns(),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', ACCOUNT_TYPE, nullable=False),
        sa.Column('employee_code', sa.String(50), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('tin', sa.String(20), nullable=True),
        _money('salary'),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('has_pension', sa.Boolean(), nullable=True),
        sa.Column('has_nhf', sa.Boolean(), nullable=True),
        sa.Column('has_nhis', sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_employees'),
        sa.UniqueConstraint('entity_id', 'entity_type', 'employee_code', name='uq_employee_entity_code'),
    )
    op.create_index('ix_employees_entity_id', 'employees', ['entity_id'])

    op.create_table(
        'payroll_records',
        *_base_columns(),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', ACCOUNT_TYPE, nullable=False),
        sa.Column('employee_id', sa.Uuid(), nullable=False),
        sa.Column('payroll_month', sa.Integer(), nullable=False),
        sa.Column('payroll_year', sa.Integer(), nullable=False),
        _money('gross_salary'),
        _money('employee_pension_contribution'),
        _money('employer_pension_contribution'),
        _money('nhf_contribution'),
        _money('nhis_contribution'),
        _money('cra'),
        _money('taxable_income'),
        _money('paye'),
        _money('net_salary'),
        sa.Column('status', PAYROLL_STATUS, nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_payroll_records'),
        sa.UniqueConstraint(
            'employee_id', 'payroll_month', 'payroll_year',
            name='uq_payroll_record_employee_period',
        ),
        sa.CheckConstraint(
            'payroll_month BETWEEN 1 AND 12',
            name='ck_payroll_records_payroll_record_month_range',
        ),
    )
    op.create_index('ix_payroll_records_employee_id', 'payroll_records', ['employee_id'])
    op.create_index(
        'ix_payroll_records_entity_period',
        'payroll_records',
        ['entity_id', 'entity_type', 'payroll_year', 'payroll_month'],
    )

    op.create_table(
        'payroll_schedules',
        *_base_columns(),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', ACCOUNT_TYPE, nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('status', PAYROLL_STATUS, nullable=False),
        sa.Column('annual_turnover', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_payroll_schedules'),
        sa.UniqueConstraint(
            'entity_id', 'entity_type', 'month', 'year',
            name='uq_payroll_schedule_entity_period',
        ),
        sa.CheckConstraint(
            'month BETWEEN 1 AND 12',
            name='ck_payroll_schedules_payroll_schedule_month_range',
        ),
    )

    op.create_table(
        'paye_remittances',
        *_base_columns(),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', ACCOUNT_TYPE, nullable=False),
        sa.Column('remittance_month', sa.Integer(), nullable=False),
        sa.Column('remittance_year', sa.Integer(), nullable=False),
        _money('total_paye'),
        sa.Column('remittance_deadline', sa.Date(), nullable=False),
        sa.Column('status', REMITTANCE_STATUS, nullable=False),
        sa.Column('remittance_date', sa.Date(), nullable=True),
        sa.Column('remittance_reference', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_paye_remittances'),
        sa.UniqueConstraint(
            'entity_id', 'entity_type', 'remittance_month', 'remittance_year',
            name='uq_paye_remittance_entity_period',
        ),
    )

    # ===========================================
    # PERSONAL INCOME TAX
    # ===========================================
    op.create_table(
        'employment_deductions',
        *_base_columns(),
        sa.Column('account_id', sa.Uuid(), nullable=False),
        sa.Column('tax_year', sa.Integer(), nullable=False),
        _money('annual_pension'),
        _money('annual_nhf'),
        _money('annual_nhis'),
        _money('annual_housing_loan_interest'),
        _money('annual_life_insurance'),
        _money('annual_rent'),
        _money('annual_rent_relief'),
        sa.Column('source', DEDUCTION_SOURCE, nullable=False),
        sa.Column('source_other', sa.String(200), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_employment_deductions'),
        sa.UniqueConstraint('account_id', 'tax_year', name='uq_employment_deductions_account_year'),
    )
    op.create_index('ix_employment_deductions_account_id', 'employment_deductions', ['account_id'])

    # ===========================================
    # SUBSCRIPTIONS
    # ===========================================
    op.create_table(
        'subscriptions',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('plan', PLAN_TIER, nullable=False),
        sa.Column('billing_cycle', BILLING_CYCLE, nullable=False),
        _money('amount'),
        sa.Column('status', SUBSCRIPTION_STATUS, nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('next_billing_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('bonus_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('previous_plan', PLAN_TIER, nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_subscriptions'),
        sa.UniqueConstraint('user_id', name='uq_subscriptions_user_id'),
    )
    op.create_index('ix_subscriptions_status', 'subscriptions', ['status'])
    op.create_index('ix_subscriptions_end_date', 'subscriptions', ['end_date'])

    op.create_table(
        'payments',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('subscription_id', sa.Uuid(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='NGN'),
        sa.Column('payment_method', PAYMENT_METHOD, nullable=False),
        sa.Column('status', PAYMENT_STATUS, nullable=False),
        sa.Column('plan', PLAN_TIER, nullable=False),
        sa.Column('billing_cycle', BILLING_CYCLE, nullable=False),
        sa.Column('reference', sa.String(100), nullable=False),
        sa.Column('gateway_transaction_id', sa.String(100), nullable=True),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_payments'),
        sa.UniqueConstraint('reference', name='uq_payments_reference'),
    )
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])


def downgrade() -> None:
    """Drop TaxBridge tables."""
    op.drop_table('payments')
    op.drop_table('subscriptions')
    op.drop_table('employment_deductions')
    op.drop_table('paye_remittances')
    op.drop_table('payroll_schedules')
    op.drop_table('payroll_records')
    op.drop_table('employees')

    # Drop enums
    bind = op.get_bind()
    for enum_type in (
        PAYMENT_METHOD, PAYMENT_STATUS, SUBSCRIPTION_STATUS, BILLING_CYCLE,
        PLAN_TIER, DEDUCTION_SOURCE, REMITTANCE_STATUS, PAYROLL_STATUS, ACCOUNT_TYPE,
    ):
        enum_type.drop(bind, checkfirst=True)
