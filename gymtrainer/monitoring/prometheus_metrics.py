"""Prometheus metrics definitions and helpers"""
import logging
import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

from gymtrainer.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """Container for all Prometheus metrics"""

    def __init__(self):
        if not ENABLE_PROMETHEUS:
            logger.info("Prometheus metrics disabled")
            self._enabled = False
            return

        # HTTP Request Metrics
        self.http_requests_total = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status']
        )

        self.http_request_duration_seconds = Histogram(
            'http_request_duration_seconds',
            'HTTP request latency',
            ['method', 'endpoint'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0]
        )

        # Gamification Metrics
        self.points_awarded_total = Counter(
            'points_awarded_total',
            'Total points awarded',
            ['activity']
        )

        self.achievements_unlocked_total = Counter(
            'achievements_unlocked_total',
            'Total achievement unlocks',
            ['achievement_id']
        )

        self.redemptions_total = Counter(
            'redemptions_total',
            'Reward redemption attempts',
            ['outcome']
        )

        self.streak_updates_total = Counter(
            'streak_updates_total',
            'Streak updates',
            ['category', 'outcome']
        )

        self._enabled = True
        logger.info("Prometheus metrics initialized")

    @property
    def enabled(self) -> bool:
        """Check if metrics are enabled"""
        return self._enabled


# Global metrics instance
metrics = PrometheusMetrics()


@contextmanager
def track_request(method: str, endpoint: str):
    """Track HTTP request metrics"""
    if not metrics.enabled:
        yield
        return

    start_time = time.time()
    status_code = 500

    try:
        yield
        status_code = 200
    finally:
        duration = time.time() - start_time
        metrics.http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

        metrics.http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status=status_code
        ).inc()


def track_points_awarded(activity: str, amount: int) -> None:
    if not metrics.enabled:
        return
    metrics.points_awarded_total.labels(activity=activity).inc(amount)


def track_achievement_unlocked(achievement_id: str) -> None:
    if not metrics.enabled:
        return
    metrics.achievements_unlocked_total.labels(achievement_id=achievement_id).inc()


def track_redemption(outcome: str) -> None:
    """outcome: 'success' or the rejecting error's class name"""
    if not metrics.enabled:
        return
    metrics.redemptions_total.labels(outcome=outcome).inc()


def track_streak_update(category: str, outcome: str) -> None:
    """outcome: 'continued', 'reset' or 'same_day'"""
    if not metrics.enabled:
        return
    metrics.streak_updates_total.labels(category=category, outcome=outcome).inc()
