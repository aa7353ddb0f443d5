"""
Rate store.

WHAT: Read snapshots of metal rates and write them back transactionally
WHY: Rates are shared by every price; partial updates across grades would
     leave the catalog priced against an inconsistent rate set
HOW: One SQLAlchemy session per batch, previous_rate shifted on each write,
     commit once or roll back everything
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..core.database import SessionLocal
from ..core.models import MetalRate
from ..models.pricing import ALL_GRADES, RateSnapshot
from ..utils.exceptions import InvalidRateException
from ..utils.money import D, to_display
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Seed values used when the table is empty on first start
DEFAULT_RATES: Dict[str, Decimal] = {
    "24K_GOLD": Decimal("7450.00"),
    "22K_GOLD": Decimal("6830.00"),
    "18K_GOLD": Decimal("5590.00"),
    "SILVER": Decimal("92.00"),
}


class RateStore:
    """Persisted table of current + previous per-gram rates."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def snapshot(self) -> RateSnapshot:
        """Return grade -> current rate. Read-only."""
        db = self.session_factory()
        try:
            rows = db.query(MetalRate).all()
            return {row.metal_type: D(row.rate_per_gram) for row in rows}
        finally:
            db.close()

    def list_rates(self) -> List[MetalRate]:
        """All rows ordered by id (detached, safe to serialize)."""
        db = self.session_factory()
        try:
            return db.query(MetalRate).order_by(MetalRate.id.asc()).all()
        finally:
            db.close()

    def upsert_rates(
        self,
        rates: Mapping[str, Decimal],
        updated_by: str,
        *,
        allowed_grades: Optional[tuple] = ALL_GRADES
    ) -> List[MetalRate]:
        """
        Write a batch of rates atomically.

        WHAT: Insert or update each grade, shifting rate_per_gram into previous_rate
        WHY: Either the whole batch lands or none of it does
        HOW: Single session; any exception rolls the batch back and re-raises

        Args:
            rates: grade -> new rate per gram
            updated_by: Source tag stored on each row
            allowed_grades: Grades accepted by this write (None = any)

        Returns:
            The written rows

        Raises:
            InvalidRateException: Unknown grade or negative rate (nothing written)
        """
        if not rates:
            raise InvalidRateException("No rates supplied")

        cleaned: Dict[str, Decimal] = {}
        for metal_type, value in rates.items():
            if allowed_grades is not None and metal_type not in allowed_grades:
                raise InvalidRateException(f"Unknown metal grade: {metal_type}", metal_type=metal_type)
            try:
                amount = to_display(value)
            except ValueError as e:
                raise InvalidRateException(str(e), metal_type=metal_type) from e
            if amount < 0:
                raise InvalidRateException(f"Rate for {metal_type} cannot be negative", metal_type=metal_type)
            cleaned[metal_type] = amount

        now = datetime.now(timezone.utc)
        db = self.session_factory()
        try:
            existing = {
                row.metal_type: row
                for row in db.query(MetalRate).filter(MetalRate.metal_type.in_(list(cleaned))).all()
            }
            written = []
            for metal_type, amount in cleaned.items():
                row = existing.get(metal_type)
                if row is None:
                    row = MetalRate(metal_type=metal_type, rate_per_gram=amount, previous_rate=amount)
                    db.add(row)
                else:
                    row.previous_rate = row.rate_per_gram
                    row.rate_per_gram = amount
                row.updated_at = now
                row.updated_by = updated_by
                written.append(row)
            db.commit()
            logger.info(
                f"Rates updated by {updated_by}: "
                + ", ".join(f"{k}={v}" for k, v in cleaned.items())
            )
            return written
        except Exception:
            db.rollback()
            logger.error(f"Rate batch from {updated_by} rolled back", exc_info=True)
            raise
        finally:
            db.close()

    def seed_defaults(self) -> bool:
        """Insert DEFAULT_RATES when the table is empty. Returns True if seeded."""
        if self.snapshot():
            return False
        self.upsert_rates(DEFAULT_RATES, updated_by="seed")
        logger.info("Seeded default metal rates")
        return True
