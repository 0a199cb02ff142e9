"""
Performance analytics service.

Summarizes the timings held in the process MetricsStore over a time window
(the last 24 hours unless the caller names a start).

Dependencies: buddy.observability.metrics
System role: Admin performance reporting
"""

import logging
from datetime import datetime, timedelta, timezone

from buddy.models.analytics import AnalyticsResponse, MetricSummary, TimeRange
from buddy.observability.metrics import MetricsStore

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(hours=24)


class AnalyticsService:
    """Read-side view over recorded operation timings."""

    def __init__(self, metrics: MetricsStore) -> None:
        self.metrics = metrics

    def get_analytics(self, since: datetime | None = None) -> AnalyticsResponse:
        """
        Summarize every metric over [since, now].

        Samples past the store's retention are pruned first.

        Args:
            since: Window start; naive values are read as UTC

        Returns:
            AnalyticsResponse: Window bounds, per-metric summaries and metric names
        """
        now = datetime.now(timezone.utc)
        if since is None:
            since = now - DEFAULT_WINDOW
        elif since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)

        self.metrics.prune()
        summaries = self.metrics.summaries(since=since.timestamp())

        logger.info(
            f"{__name__}:get_analytics - Summarized {len(summaries)} metrics",
            extra={"since": since.isoformat()},
        )
        return AnalyticsResponse(
            time_range=TimeRange(since=since, to=now),
            metrics={
                name: MetricSummary(**summary) if summary else None
                for name, summary in summaries.items()
            },
            metric_types=self.metrics.metric_names(),
        )
