from datetime import datetime
from compensation_api.extensions import db

class Employee(db.Model):
    """
    Boundary record owned by the employee-management side of the HRMS.
    Only the fields the salary engine reads are kept here.
    """
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)

    code  = db.Column(db.String(32), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    first_name = db.Column(db.String(80), nullable=False)
    last_name  = db.Column(db.String(80), nullable=True)

    # monthly wage (CTC / 12) the component catalog is applied against
    monthly_wage = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    doj = db.Column(db.Date, nullable=True)   # date of joining
    dol = db.Column(db.Date, nullable=True)   # date of leaving (null if active)
    status = db.Column(db.String(16), default="active", nullable=False)  # active/inactive

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)
