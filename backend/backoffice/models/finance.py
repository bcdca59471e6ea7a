from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z, utcnow
from ..validation import format_money


CHARGE_TYPES = (
    "WATER_BILL",
    "ELECTRICITY_BILL",
    "RENT",
    "LAWYER",
    "BROKEN_PARTS",
    "MAINTENANCE",
    "OTHER",
)

AD_PLATFORMS = (
    "FACEBOOK",
    "INSTAGRAM",
    "META",
    "GOOGLE",
    "TIKTOK",
    "SNAPCHAT",
    "YOUTUBE",
    "OTHER",
)


class Charge(db.Model):
    """Operating expense (bills, rent, repairs)."""
    __tablename__ = "charges"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_charges_amount_positive"),
        db.Index("ix_charges_charge_date", "charge_date"),
        db.Index("ix_charges_type", "type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(32), nullable=False)
    custom_type = db.Column(db.String(100), nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    charge_date = db.Column(db.Date, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "customType": self.custom_type,
            "amount": format_money(self.amount),
            "description": self.description,
            "chargeDate": to_iso_date(self.charge_date),
            "createdBy": self.created_by,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class AdsCost(db.Model):
    """
    Advertising spend for one campaign.

    cost_per_result is derived: cost / results rounded to cents, 0 when there
    are no results. It is recomputed by the service on every write.
    """
    __tablename__ = "ads_costs"
    __table_args__ = (
        db.CheckConstraint("cost > 0", name="ck_ads_costs_cost_positive"),
        db.CheckConstraint("results >= 0", name="ck_ads_costs_results_non_negative"),
        db.Index("ix_ads_costs_campaign_date", "campaign_date"),
        db.Index("ix_ads_costs_platform", "platform"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    campaign_name = db.Column(db.String(255), nullable=False)
    platform = db.Column(db.String(32), nullable=False)
    cost = db.Column(db.Numeric(10, 2), nullable=False)
    results = db.Column(db.Integer, nullable=False, default=0)
    cost_per_result = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    campaign_date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "campaignName": self.campaign_name,
            "platform": self.platform,
            "cost": format_money(self.cost),
            "results": self.results,
            "costPerResult": format_money(self.cost_per_result),
            "campaignDate": to_iso_date(self.campaign_date),
            "notes": self.notes,
            "createdBy": self.created_by,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Salary(db.Model):
    """Monthly salary record. total_amount = base_salary + bonuses - deductions."""
    __tablename__ = "salaries"
    __table_args__ = (
        db.CheckConstraint("base_salary > 0", name="ck_salaries_base_positive"),
        db.CheckConstraint("bonuses >= 0", name="ck_salaries_bonuses_non_negative"),
        db.CheckConstraint("deductions >= 0", name="ck_salaries_deductions_non_negative"),
        db.CheckConstraint("month BETWEEN 1 AND 12", name="ck_salaries_month_range"),
        db.Index("ix_salaries_period", "year", "month"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_name = db.Column(db.String(255), nullable=False)
    position = db.Column(db.String(100), nullable=True)
    base_salary = db.Column(db.Numeric(10, 2), nullable=False)
    bonuses = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    deductions = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employeeName": self.employee_name,
            "position": self.position,
            "baseSalary": format_money(self.base_salary),
            "bonuses": format_money(self.bonuses),
            "deductions": format_money(self.deductions),
            "totalAmount": format_money(self.total_amount),
            "month": self.month,
            "year": self.year,
            "notes": self.notes,
            "paidAt": to_utc_z(self.paid_at),
            "isPaid": self.is_paid,
            "createdBy": self.created_by,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
