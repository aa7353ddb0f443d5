"""
Spot price feed.

WHAT: Fetch live gold/silver spot prices (USD per troy ounce) and USD->INR
WHY: Metal rates follow the international market
HOW: Plain httpx GETs with a short timeout; each quote falls back to the
     last-known approximation from settings when the source fails
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

import httpx

from ..core.config import settings
from ..utils.money import D
from ..utils.logger import get_logger

logger = get_logger(__name__)

TROY_OUNCE_GRAMS = Decimal("31.1034768")

GOLD_SYMBOL = "XAU"
SILVER_SYMBOL = "XAG"


@dataclass
class SpotQuote:
    """Raw market inputs for one sync."""
    gold_usd_per_oz: Decimal
    silver_usd_per_oz: Decimal
    usd_inr: Decimal
    fallbacks: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.fallbacks)

    @property
    def gold_inr_per_gram(self) -> Decimal:
        return self.gold_usd_per_oz * self.usd_inr / TROY_OUNCE_GRAMS

    @property
    def silver_inr_per_gram(self) -> Decimal:
        return self.silver_usd_per_oz * self.usd_inr / TROY_OUNCE_GRAMS


def fetch_spot_usd_per_ounce(symbol: str) -> Decimal:
    """
    Fetch a metal's spot price in USD per troy ounce.

    Raises:
        ValueError: If response is invalid or price is non-positive.
        httpx.HTTPError: On network/HTTP errors.
    """
    resp = httpx.get(f"{settings.SPOT_PRICE_URL}/{symbol}", timeout=settings.SPOT_FEED_TIMEOUT)
    resp.raise_for_status()

    data = resp.json()
    price = D(data.get("price")) if isinstance(data, dict) else Decimal("0")
    if not (price.is_finite() and price > 0):
        raise ValueError(f"Invalid {symbol} spot price from feed: {data}")

    logger.info(f"Fetched {symbol} spot: {price} USD/oz")
    return price


def fetch_usd_inr() -> Decimal:
    """
    Fetch the USD->INR exchange rate.

    Raises:
        ValueError: If response is invalid or rate is non-positive.
        httpx.HTTPError: On network/HTTP errors.
    """
    resp = httpx.get(settings.FX_RATE_URL, timeout=settings.SPOT_FEED_TIMEOUT)
    resp.raise_for_status()

    data = resp.json()
    if data.get("result") not in (None, "success"):
        raise ValueError(f"FX feed returned {data.get('result')}: {data}")
    rate = D((data.get("rates") or {}).get("INR"))
    if not (rate.is_finite() and rate > 0):
        raise ValueError(f"FX feed missing INR rate: {data}")

    logger.info(f"Fetched USD/INR: {rate}")
    return rate


def fetch_spot_quote() -> SpotQuote:
    """
    Fetch every market input, substituting approximations for failed sources.

    Never raises for feed problems: the caller gets a degraded quote instead.
    """
    fallbacks = []

    def _with_fallback(name, fetch, fallback_value):
        try:
            return fetch()
        except (httpx.HTTPError, ValueError, ArithmeticError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Spot feed '{name}' unavailable, using last-known approximation: {e}")
            fallbacks.append(name)
            return D(fallback_value)

    gold = _with_fallback(
        GOLD_SYMBOL, lambda: fetch_spot_usd_per_ounce(GOLD_SYMBOL), settings.FALLBACK_GOLD_USD_PER_OZ
    )
    silver = _with_fallback(
        SILVER_SYMBOL, lambda: fetch_spot_usd_per_ounce(SILVER_SYMBOL), settings.FALLBACK_SILVER_USD_PER_OZ
    )
    usd_inr = _with_fallback("USD_INR", fetch_usd_inr, settings.FALLBACK_USD_INR)

    return SpotQuote(
        gold_usd_per_oz=gold,
        silver_usd_per_oz=silver,
        usd_inr=usd_inr,
        fallbacks=fallbacks,
    )
