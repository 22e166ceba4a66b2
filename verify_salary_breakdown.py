from datetime import date

from compensation_api import create_app
from compensation_api.models.employee import Employee
from compensation_api.services.salary_structure_service import calculate_for_employees, catalog_evaluation_plan

app = create_app()

with app.app_context():
    today = date.today()
    plan = catalog_evaluation_plan(today)
    print(f"Evaluation order: {' -> '.join(plan.order) or '(empty catalog)'}")
    for code, missing in plan.fallbacks.items():
        print(f"  WARNING {code}: base {missing} not active, falls back to wage")

    employees = Employee.query.filter_by(status="active").order_by(Employee.code).all()
    if not employees:
        print("No active employees. Run `flask seed-components` first.")
        exit(1)

    for b in calculate_for_employees(employees, today):
        print(f"\n{b.employee_name} (id={b.employee_id}) wage={b.monthly_wage}")
        for li in b.earnings:
            print(f"  + {li.code:<16} {li.amount:>12}")
        for li in b.deductions:
            print(f"  - {li.code:<16} {li.amount:>12}")
        for li in b.employer_contribution_items:
            print(f"  * {li.code:<16} {li.amount:>12}  (employer)")
        print(f"  gross={b.gross_salary} deductions={b.total_deductions} net={b.net_salary}")
        assert b.net_salary == b.gross_salary - b.total_deductions, "net mismatch"

    print("\nAll breakdowns consistent.")
