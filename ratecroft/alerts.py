"""Rate alert evaluation against current rates.

Alert storage and email delivery live outside the core; this module only
decides which stored alerts have reached their target.
"""

import logging
from typing import Iterable

from ratecroft.models import Alert
from ratecroft.service import RateService


logger = logging.getLogger(__name__)


def should_trigger(alert: Alert, current_rate: float) -> bool:
    """An untriggered alert fires once the current rate is at or below target."""
    return not alert.triggered and current_rate <= alert.target_rate


def evaluate_alerts(
    alerts: Iterable[Alert], service: RateService
) -> list[tuple[Alert, float]]:
    """
    Find alerts whose target has been reached.

    Returns:
        (alert, current rate) pairs, in input order
    """
    rates: dict[str, float] = {}
    hits = []
    for alert in alerts:
        if alert.loan_type not in rates:
            rates[alert.loan_type] = service.current_rate(alert.loan_type)
        current = rates[alert.loan_type]
        if should_trigger(alert, current):
            hits.append((alert, current))

    logger.info(f"{len(hits)} alerts reached their target")
    return hits
