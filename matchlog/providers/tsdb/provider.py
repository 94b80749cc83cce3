"""TheSportsDB fixtures provider.

Fetches one day of fixtures for every configured league and normalizes them
into LeagueGroups, in configured league order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from matchlog.core import LeagueConfig, LeagueGroup, NetworkError
from matchlog.providers.tsdb.client import TSDBClient
from matchlog.providers.tsdb.normalizer import normalize_events
from matchlog.utilities.constants import DEFAULT_LEAGUES

logger = logging.getLogger(__name__)


@dataclass
class DaySchedule:
    """All configured leagues for one date.

    failed_leagues is only ever non-empty when partial results were allowed.
    """

    date: str
    leagues: list[LeagueGroup] = field(default_factory=list)
    failed_leagues: list[str] = field(default_factory=list)


class TSDBProvider:
    """Per-day fixture source backed by TheSportsDB.

    One eventsday.php request per configured league, run concurrently.
    Strict by default: if any league fails the whole day fails, since
    downstream grouping assumes a complete snapshot. allow_partial=True keeps
    the leagues that succeeded and leaves the failed ones empty.
    """

    MAX_WORKERS = 6

    def __init__(
        self,
        leagues: list[LeagueConfig] | tuple[LeagueConfig, ...] = DEFAULT_LEAGUES,
        client: TSDBClient | None = None,
        api_key: str | None = None,
        allow_partial: bool = False,
    ):
        self._leagues = tuple(leagues)
        self._client = client or TSDBClient(api_key=api_key)
        self._allow_partial = allow_partial

    @property
    def name(self) -> str:
        return "tsdb"

    @property
    def leagues(self) -> tuple[LeagueConfig, ...]:
        return self._leagues

    def _fetch_league(self, league: LeagueConfig, date_str: str) -> LeagueGroup:
        records = self._client.get_events_by_date(league, date_str)
        events = normalize_events(records, league)
        if len(events) < len(records):
            logger.debug(
                "[TSDB] %s %s: dropped %d of %d records",
                league.name,
                date_str,
                len(records) - len(events),
                len(records),
            )
        return LeagueGroup(id=league.id, name=league.name, badge=league.badge, events=events)

    def fetch_events_by_date(self, date_str: str, allow_partial: bool | None = None) -> DaySchedule:
        """Fetch and normalize every configured league for a date.

        Args:
            date_str: Date in YYYY-MM-DD format
            allow_partial: Override the provider default for this call

        Raises:
            NetworkError: a league failed and partial results aren't allowed
        """
        partial = self._allow_partial if allow_partial is None else allow_partial
        schedule = DaySchedule(date=date_str)
        if not self._leagues:
            return schedule

        workers = min(self.MAX_WORKERS, len(self._leagues))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._fetch_league, league, date_str) for league in self._leagues
            ]

            # Iterate in submission order to preserve configured league order
            for league, future in zip(self._leagues, futures, strict=True):
                try:
                    schedule.leagues.append(future.result())
                except NetworkError as e:
                    if not partial:
                        for pending in futures:
                            pending.cancel()
                        logger.warning(
                            "[TSDB] %s failed for %s, failing the day: %s", league.name, date_str, e
                        )
                        raise
                    logger.warning(
                        "[TSDB] %s failed for %s, continuing without it: %s",
                        league.name,
                        date_str,
                        e,
                    )
                    schedule.failed_leagues.append(league.id)
                    schedule.leagues.append(
                        LeagueGroup(id=league.id, name=league.name, badge=league.badge)
                    )

        total = sum(len(g.events) for g in schedule.leagues)
        logger.info(
            "[TSDB] %s: %d events across %d leagues", date_str, total, len(schedule.leagues)
        )
        return schedule

    def close(self) -> None:
        self._client.close()
