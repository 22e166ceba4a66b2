# compensation_api/models/payroll/__init__.py
from compensation_api.extensions import db  # noqa

from .components import SalaryComponent, EmployeeSalary

__all__ = ["SalaryComponent", "EmployeeSalary"]
