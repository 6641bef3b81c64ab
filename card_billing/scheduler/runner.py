"""In-process scheduler that triggers the nightly billing-cycle closing"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from card_billing.config import settings
from card_billing.domain.models import BillingRunSummary
from card_billing.scheduler.cron import CronExpression
from card_billing.services.billing_cycle import BillingCycleCloser

logger = logging.getLogger(__name__)


class BillingScheduler:
    """
    Polls the clock and runs the closer whenever the cron expression matches.

    Each matching minute fires at most once; the run closes the previous
    calendar day so that day's purchases are already recorded.
    """

    def __init__(
        self,
        closer: BillingCycleCloser,
        cron_expression: Optional[str] = None,
        timezone_name: Optional[str] = None,
        poll_interval_seconds: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._closer = closer
        self._cron = CronExpression.parse(cron_expression or settings.billing_cron)
        self._timezone = ZoneInfo(timezone_name or settings.timezone)
        self._poll_interval = poll_interval_seconds or settings.scheduler_poll_seconds
        if not 0 < self._poll_interval < 60:
            raise ValueError(f"Poll interval must be between 0 and 60 seconds, got {self._poll_interval}")
        self._clock = clock or (lambda: datetime.now(self._timezone))
        self._last_fired: Optional[datetime] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self, now: Optional[datetime] = None) -> Optional[BillingRunSummary]:
        """Run the closer if `now` matches the schedule (public for testing)"""
        now = now or self._clock()
        minute = now.replace(second=0, microsecond=0)

        if not self._cron.matches(minute) or minute == self._last_fired:
            return None

        self._last_fired = minute
        closing_date = minute.date() - timedelta(days=1)
        logger.info("Billing schedule fired", extra={"fired_at": minute.isoformat(), "closing_date": closing_date.isoformat()})
        return self._closer.close_statements(closing_date)

    def start(self) -> None:
        """Start the scheduler in a background thread"""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="billing-scheduler", daemon=True)
        self._thread.start()
        logger.info("Billing scheduler started", extra={"poll_interval_seconds": self._poll_interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for an in-flight run to finish"""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("Billing scheduler stopped")

    def wait(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Billing scheduler tick failed")
            self._stop_event.wait(timeout=self._poll_interval)


def main() -> None:
    """Run the billing scheduler as a standalone process"""
    from card_billing.infrastructure.clients.notifier import NotificationClient
    from card_billing.infrastructure.database.session import SessionLocal
    from card_billing.infrastructure.observability.logging import setup_logging

    setup_logging(settings.log_level)
    scheduler = BillingScheduler(BillingCycleCloser(SessionLocal, NotificationClient()))
    scheduler.start()
    try:
        while scheduler.is_running:
            scheduler.wait(timeout=1.0)
    except KeyboardInterrupt:
        scheduler.stop()


if __name__ == "__main__":
    main()
