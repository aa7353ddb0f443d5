"""
Product catalog reader.

WHAT: Read-only access to product records plus a one-call price quote
WHY: Catalog CRUD lives elsewhere; pricing only needs to read a product
HOW: SQLAlchemy row -> pydantic ProductRecord, then the price calculator
"""

from datetime import datetime
from typing import Callable, Optional, Tuple

from sqlalchemy.orm import Session

from .price_calculator import compute_breakdown
from .rate_store import RateStore
from ..core.database import SessionLocal
from ..core.models import Product
from ..models.pricing import PriceBreakdown, PricingPolicy, ProductRecord
from ..utils.exceptions import ProductNotFoundException


class ProductCatalog:
    """Look up products by id."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def get(self, product_id: int) -> ProductRecord:
        """
        Raises:
            ProductNotFoundException: No product with this id
        """
        db = self.session_factory()
        try:
            row = db.get(Product, product_id)
            if row is None:
                raise ProductNotFoundException(product_id)
            return ProductRecord.model_validate(row)
        finally:
            db.close()


def quote_product(
    product_id: int,
    catalog: Optional[ProductCatalog] = None,
    rate_store: Optional[RateStore] = None,
    policy: Optional[PricingPolicy] = None,
    at: Optional[datetime] = None,
) -> Tuple[ProductRecord, PriceBreakdown]:
    """
    Price a product against the current rate snapshot.

    Returns:
        (product, breakdown); the breakdown may be degraded, callers decide
        whether that is acceptable
    """
    catalog = catalog or ProductCatalog()
    rate_store = rate_store or RateStore()
    product = catalog.get(product_id)
    breakdown = compute_breakdown(
        product,
        rate_store.snapshot(),
        policy or PricingPolicy.from_settings(),
        at=at,
    )
    return product, breakdown
