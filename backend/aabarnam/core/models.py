"""
ORM models for rates and product records.

WHAT: SQLAlchemy models for metal_rates and products tables
WHY: Rates are the shared resource every price derives from; products are
     read-only inputs owned by the catalog collaborator
HOW: Declarative models with Numeric money/weight columns and constraints
"""

from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, CheckConstraint
)

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MetalRate(Base):
    """
    MetalRate table - current and previous per-gram rate for a metal grade.

    WHAT: One row per grade (24K_GOLD, 22K_GOLD, 18K_GOLD, SILVER)
    WHY: previous_rate drives trend display and must always be the value the
         current rate replaced
    HOW: Unique metal_type; only RateStore.upsert_rates writes these rows
    """
    __tablename__ = "metal_rates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    metal_type = Column(String(30), unique=True, nullable=False, index=True)
    rate_per_gram = Column(Numeric(12, 2), nullable=False, default=0)
    previous_rate = Column(Numeric(12, 2), nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_by = Column(String(50), nullable=True)

    __table_args__ = (
        CheckConstraint("rate_per_gram >= 0", name="check_rate_non_negative"),
    )

    def __repr__(self):
        return f"<MetalRate({self.metal_type}={self.rate_per_gram}, prev={self.previous_rate})>"


class Product(Base):
    """
    Product table - jewelry item with purchase-side and retail-side pricing fields.

    WHAT: Catalog record maintained by the admin collaborator
    WHY: The pricing engine needs weights, touch and charge structure
    HOW: Weights to 3 decimals, money to 2 decimals; core only reads it
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String(50), unique=True, nullable=True)
    name = Column(String(200), nullable=False)
    metal_type = Column(String(30), nullable=False)

    gross_weight = Column(Numeric(10, 3), nullable=False)
    net_weight = Column(Numeric(10, 3), nullable=False)
    stone_weight = Column(Numeric(10, 3), nullable=False, default=0)

    # Purchase side (what the store paid)
    purchase_touch_pct = Column(Numeric(5, 2), nullable=True)
    purchase_mc_type = Column(String(20), nullable=False, default="FIXED")
    purchase_mc = Column(Numeric(12, 2), nullable=False, default=0)

    # Retail side (what the customer sees)
    wastage_pct = Column(Numeric(5, 2), nullable=False, default=0)
    making_charge_type = Column(String(20), nullable=False, default="FLAT")
    making_charge = Column(Numeric(12, 2), nullable=False, default=0)
    fixed_price = Column(Numeric(12, 2), nullable=True)

    discount_type = Column(String(20), nullable=True)
    discount_value = Column(Numeric(12, 2), nullable=True)
    discount_start = Column(DateTime(timezone=True), nullable=True)
    discount_end = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("gross_weight >= net_weight", name="check_gross_covers_net"),
        CheckConstraint("net_weight >= 0", name="check_net_weight_non_negative"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name={self.name}, metal={self.metal_type})>"
