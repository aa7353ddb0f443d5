"""
Market rate synchronization service.

WHAT: Keep metal rates fresh automatically (interval job) and on demand
WHY: Listed and floor prices are only as good as the rates behind them
HOW: APScheduler background job + a lock that serializes every sync through
     one transactional RateStore upsert
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from .rate_store import RateStore
from .spot_price_feed import SpotQuote, fetch_spot_quote
from ..models.pricing import GRADE_PURITY, SILVER
from ..utils.exceptions import ValidationException
from ..utils.money import D, to_display
from ..utils.logger import get_logger

logger = get_logger(__name__)

SYNC_JOB_ID = "metal_rate_sync"


@dataclass
class SyncConfig:
    """Process-wide sync settings. Mutated only via RateSyncService.configure."""
    interval_hours: float = 1.0
    premium_pct: float = 3.0


@dataclass
class SyncResult:
    """Outcome of one sync run."""
    success: bool
    rates: Dict[str, Decimal] = field(default_factory=dict)
    degraded: bool = False
    error: Optional[str] = None
    synced_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def derive_grade_rates(quote: SpotQuote, premium_pct: float) -> Dict[str, Decimal]:
    """
    Turn a spot quote into retail per-gram rates for every grade.

    rate = pure metal INR/gram × grade purity × (1 + premium%), 2 decimals.
    """
    multiplier = 1 + D(premium_pct) / Decimal("100")
    rates = {}
    for grade, purity in GRADE_PURITY.items():
        pure_per_gram = quote.silver_inr_per_gram if grade == SILVER else quote.gold_inr_per_gram
        rates[grade] = to_display(pure_per_gram * purity * multiplier)
    return rates


class RateSyncService:
    """
    Owns the sync configuration and the periodic job.

    WHAT: sync_now (manual or scheduled) and configure (reschedule)
    WHY: One owner for timer + config avoids overlapping or orphaned jobs
    HOW: BackgroundScheduler job replaced under a lock; syncs run under
         a second lock so previous/current swaps never interleave
    """

    def __init__(
        self,
        rate_store: Optional[RateStore] = None,
        config: Optional[SyncConfig] = None,
        scheduler: Optional[BackgroundScheduler] = None,
        quote_fetcher=fetch_spot_quote,
    ):
        self.rate_store = rate_store or RateStore()
        self.config = config or SyncConfig()
        self.scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self.quote_fetcher = quote_fetcher
        self.last_result: Optional[SyncResult] = None
        self._sync_lock = threading.Lock()
        self._config_lock = threading.Lock()

    # ---------- lifecycle ----------

    def start(self):
        """Arm the periodic job for the current config and start the scheduler."""
        with self._config_lock:
            self._arm_job()
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(
            f"Rate sync scheduler started (interval: {self.config.interval_hours}h, "
            f"premium: {self.config.premium_pct}%)"
        )

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Rate sync scheduler stopped")

    # ---------- operations ----------

    def sync_now(self, premium_pct: Optional[float] = None) -> SyncResult:
        """
        Fetch spot prices and write all grades in one transaction.

        Feed outages degrade to approximations (still success). Storage
        failures roll the batch back and report success=False.
        """
        premium = self.config.premium_pct if premium_pct is None else premium_pct

        with self._sync_lock:
            quote = self.quote_fetcher()
            rates = derive_grade_rates(quote, premium)
            source = "sync:degraded" if quote.degraded else "sync"

            if quote.degraded:
                logger.warning(
                    f"Rate sync using approximate inputs for {', '.join(quote.fallbacks)}; "
                    f"rates are lower fidelity until the feed recovers"
                )

            try:
                self.rate_store.upsert_rates(rates, updated_by=source)
            except Exception as e:
                logger.error(f"Rate sync failed, previous rates kept: {e}")
                result = SyncResult(success=False, degraded=quote.degraded, error=str(e))
                self.last_result = result
                return result

            result = SyncResult(success=True, rates=rates, degraded=quote.degraded)
            self.last_result = result
            logger.info(f"Rate sync complete (premium {premium}%, degraded={quote.degraded})")
            return result

    def override(self, rates: Dict[str, Decimal], updated_by: str = "manual"):
        """Manual rate write; shares the sync lock so it never interleaves with a sync."""
        with self._sync_lock:
            return self.rate_store.upsert_rates(rates, updated_by=updated_by)

    def configure(self, interval_hours: float, premium_pct: float) -> SyncConfig:
        """
        Update interval/premium and reschedule.

        The old job is removed before the new one is added. interval 0
        disables the periodic job; sync_now keeps working.
        """
        if interval_hours is None or interval_hours < 0:
            raise ValidationException(
                "Sync interval must be zero or positive",
                field_errors=[{"field": "interval", "error": "must be >= 0"}]
            )
        if premium_pct is None or not 0 <= premium_pct <= 100:
            raise ValidationException(
                "Premium must be between 0 and 100 percent",
                field_errors=[{"field": "premium", "error": "must be within 0..100"}]
            )

        with self._config_lock:
            self.config = SyncConfig(interval_hours=float(interval_hours), premium_pct=float(premium_pct))
            self._arm_job()

        logger.info(f"Rate sync reconfigured (interval: {interval_hours}h, premium: {premium_pct}%)")
        return self.config

    def next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(SYNC_JOB_ID)
        return getattr(job, "next_run_time", None) if job else None

    # ---------- internals ----------

    def _run_scheduled_sync(self):
        """Job body; exceptions are logged so the scheduler keeps running."""
        try:
            self.sync_now()
        except Exception as e:
            logger.error(f"Scheduled rate sync crashed: {e}", exc_info=True)

    def _arm_job(self):
        # Caller holds _config_lock
        if self.scheduler.get_job(SYNC_JOB_ID):
            self.scheduler.remove_job(SYNC_JOB_ID)
        if self.config.interval_hours > 0:
            self.scheduler.add_job(
                self._run_scheduled_sync,
                "interval",
                hours=self.config.interval_hours,
                id=SYNC_JOB_ID,
                max_instances=1,
                coalesce=True,
            )
