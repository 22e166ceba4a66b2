"""employees, salary component catalog and employee salary assignments

Revision ID: 4f1e9a7c2d10
Revises:
Create Date: 2025-11-20 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1e9a7c2d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=32), nullable=False, unique=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(length=80), nullable=False),
        sa.Column('last_name', sa.String(length=80), nullable=True),
        sa.Column('monthly_wage', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('doj', sa.Date(), nullable=True),
        sa.Column('dol', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'salary_components',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=50), nullable=False, unique=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('type', sa.Enum('earning', 'deduction', name='component_type_enum'), nullable=False),
        sa.Column('value_type', sa.Enum('fixed', 'percentage', name='component_value_type_enum'),
                  nullable=False, server_default='fixed'),
        sa.Column('percentage_value', sa.Numeric(7, 4), nullable=True),
        sa.Column('fixed_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('based_on_code', sa.String(length=50), nullable=True),
        sa.Column('max_limit', sa.Numeric(12, 2), nullable=True),
        sa.Column('calc_rule', sa.Enum('standard', 'tax_slab', name='component_calc_rule_enum'),
                  nullable=False, server_default='standard'),
        sa.Column('is_taxable', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_mandatory', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_employer_contribution', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('display_order', sa.Integer(), nullable=True, server_default='100'),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_to', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_salary_components_active', 'salary_components',
                    ['is_active', 'effective_from', 'effective_to'], unique=False)

    op.create_table(
        'employee_salary',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('component_id', sa.Integer(), sa.ForeignKey('salary_components.id'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('percentage', sa.Numeric(7, 4), nullable=True),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_to', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('remarks', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('employee_id', 'component_id', 'effective_from', name='uq_emp_comp_from'),
    )
    op.create_index('ix_employee_salary_employee_id', 'employee_salary', ['employee_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_employee_salary_employee_id', table_name='employee_salary')
    op.drop_table('employee_salary')
    op.drop_index('ix_salary_components_active', table_name='salary_components')
    op.drop_table('salary_components')
    op.drop_table('employees')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for enum_name in ('component_calc_rule_enum', 'component_value_type_enum', 'component_type_enum'):
            sa.Enum(name=enum_name).drop(bind, checkfirst=True)
