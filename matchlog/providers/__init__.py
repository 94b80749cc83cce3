"""Provider layer - upstream sports data sources."""

from matchlog.providers.tsdb import DaySchedule, TSDBClient, TSDBProvider

__all__ = ["DaySchedule", "TSDBClient", "TSDBProvider"]
