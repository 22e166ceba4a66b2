from datetime import datetime, date
from compensation_api.extensions import db

class SalaryComponent(db.Model):
    __tablename__ = "salary_components"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False)  # BASIC_SALARY, HRA, PF_EMPLOYEE, ...
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.String(500))
    type = db.Column(db.Enum("earning", "deduction", name="component_type_enum"), nullable=False)

    # valuation: fixed amount, or percentage of the wage / of another component
    value_type = db.Column(db.Enum("fixed", "percentage", name="component_value_type_enum"),
                           nullable=False, default="fixed")
    percentage_value = db.Column(db.Numeric(7, 4))   # 50.0000 for 50%
    fixed_amount = db.Column(db.Numeric(12, 2))
    based_on_code = db.Column(db.String(50))         # HRA -> BASIC_SALARY; null = % of wage
    max_limit = db.Column(db.Numeric(12, 2))         # cap after valuation (PF)

    # "tax_slab" routes the component to the income-tax ladder (TDS)
    calc_rule = db.Column(db.Enum("standard", "tax_slab", name="component_calc_rule_enum"),
                          nullable=False, default="standard")

    is_taxable = db.Column(db.Boolean, nullable=False, default=True)
    is_mandatory = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_employer_contribution = db.Column(db.Boolean, nullable=False, default=False)
    display_order = db.Column(db.Integer, default=100)

    effective_from = db.Column(db.Date, nullable=False, default=date.today)
    effective_to = db.Column(db.Date)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_salary_components_active", "is_active", "effective_from", "effective_to"),
    )


class EmployeeSalary(db.Model):
    """Per-employee override of a catalog component for an effective window."""
    __tablename__ = "employee_salary"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    component_id = db.Column(db.Integer, db.ForeignKey("salary_components.id"), nullable=False)
    amount = db.Column(db.Numeric(12, 2))
    percentage = db.Column(db.Numeric(7, 4))

    effective_from = db.Column(db.Date, nullable=False, default=date.today)
    effective_to = db.Column(db.Date)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    remarks = db.Column(db.String(500))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    employee = db.relationship("Employee", lazy="joined")
    component = db.relationship("SalaryComponent", lazy="joined")

    __table_args__ = (
        db.UniqueConstraint("employee_id", "component_id", "effective_from", name="uq_emp_comp_from"),
    )
