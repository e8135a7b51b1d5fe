"""Graphwire insights batching over FQL multiquery.

Queries page insight metrics for several period-end dates in one round trip.
Each date becomes one FQL query in a multiquery, keyed by the date's position
in the sorted date list, so answers map back to dates regardless of the order
the caller supplied them in.

Sample by-metric-by-date output for two metrics over three dates::

    {
        "page_active_users": {2011-01-01: 7, 2011-01-02: 26, 2011-01-03: 15},
        "page_tab_views_login_top_unique": {
            2011-01-01: {"photos": 2, "wall": 30},
            2011-01-02: {"photos": 1, "wall": 23},
            2011-01-03: {"wall": 12},
        },
    }

Insights day boundaries are midnight Pacific time, so every date is moved to
00:00 in the reference zone before it is turned into an ``end_time``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from graphwire.config import settings
from graphwire.connectors.facebook.multiquery import as_result_array, reshape_by_metric_by_date
from graphwire.core.exceptions import FacebookConfigurationError, FacebookJsonMappingError
from graphwire.core.logging import get_logger

if TYPE_CHECKING:
    from graphwire.connectors.facebook.client import FacebookClient

logger = get_logger("facebook.insights")

TimeZoneLike = Union[ZoneInfo, str, None]


class Period(Enum):
    """Insights aggregation period; the value is its length in seconds."""

    DAY = 60 * 60 * 24
    WEEK = 60 * 60 * 24 * 7
    DAYS_28 = 60 * 60 * 24 * 28
    MONTH = 2592000
    LIFETIME = 0

    @property
    def period_length(self) -> int:
        return self.value


# ── Time conversion ──


def reference_time_zone(time_zone: TimeZoneLike = None) -> ZoneInfo:
    """Resolve the zone that defines insights day boundaries."""
    if isinstance(time_zone, ZoneInfo):
        return time_zone
    return ZoneInfo(time_zone or settings.insights_time_zone)


def _as_aware(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC instants
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_pacific_midnight(value: datetime, time_zone: TimeZoneLike = None) -> datetime:
    """Slide ``value`` back to 00:00:00.000 of its day in the reference zone."""
    if value is None:
        raise FacebookConfigurationError("Provide a date")
    local = _as_aware(value).astimezone(reference_time_zone(time_zone))
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def to_pacific_midnights(
    values: Iterable[datetime], time_zone: TimeZoneLike = None
) -> List[datetime]:
    """Normalize each date to reference-zone midnight; sorted, without duplicates."""
    zone = reference_time_zone(time_zone)
    return sorted({to_pacific_midnight(value, zone) for value in values})


def to_unix_time(value: datetime) -> int:
    """Whole seconds since the epoch; sub-second parts are discarded."""
    return int(_as_aware(value).timestamp())


def to_unix_time_at_pacific_midnight(value: datetime, time_zone: TimeZoneLike = None) -> int:
    return to_unix_time(to_pacific_midnight(value, time_zone))


# ── Query building ──


def _metric_in_list(metrics: Optional[Iterable[str]]) -> str:
    quoted = []
    for metric in metrics or ():
        if metric is None:
            continue
        if not isinstance(metric, str):
            raise FacebookConfigurationError(f"Metric names must be strings, got {metric!r}")
        if not metric.strip():
            continue
        metric = metric.strip()
        if "'" in metric:
            raise FacebookConfigurationError(f"Invalid metric name: {metric!r}")
        quoted.append(f"'{metric}'")
    return ",".join(quoted)


def create_base_query(
    period: Period, page_object_id: Union[str, int], metrics: Optional[Iterable[str]]
) -> str:
    """FQL shared by every date; the caller appends the end_time value.

    With no metrics the ``metric IN`` clause is left out and every available
    metric is returned.
    """
    query = f"SELECT metric, value FROM insights WHERE object_id='{page_object_id}'"
    metric_in_list = _metric_in_list(metrics)
    if metric_in_list:
        query += f" AND metric IN ({metric_in_list})"
    query += f" AND period={period.period_length} AND end_time="
    return query


def build_queries(base_query: str, dates_by_query_index: Sequence[datetime]) -> Dict[str, str]:
    """One complete query per date, keyed by the date's index as a string."""
    return {
        str(query_index): base_query + str(to_unix_time(date))
        for query_index, date in enumerate(dates_by_query_index)
    }


# ── Execution ──


def _validate_arguments(
    client: Optional["FacebookClient"],
    page_object_id: Union[str, int, None],
    period: Optional[Period],
    period_end_dates: Optional[Iterable[datetime]],
) -> List[datetime]:
    if client is None:
        raise FacebookConfigurationError("client argument is required")
    if page_object_id is None or not str(page_object_id).strip():
        raise FacebookConfigurationError(
            "page_object_id should be a non-empty string, probably a positive number"
        )
    if not isinstance(period, Period):
        raise FacebookConfigurationError("period argument is required")
    dates = list(period_end_dates or ())
    if not dates:
        raise FacebookConfigurationError("period_end_dates should be non-empty")
    if any(date is None for date in dates):
        raise FacebookConfigurationError("period_end_dates cannot contain None")
    return dates


def execute_insight_queries_by_date(
    client: "FacebookClient",
    page_object_id: Union[str, int],
    metrics: Optional[Iterable[str]],
    period: Period,
    period_end_dates: Iterable[datetime],
    time_zone: TimeZoneLike = None,
) -> Dict[datetime, List[Any]]:
    """Raw rows per date: ``{date: [{"metric": ..., "value": ...}, ...]}``.

    Keys are the period-end dates normalized to reference-zone midnight, in
    ascending order. Dates for which the API returned nothing map to ``[]``.
    """
    dates = _validate_arguments(client, page_object_id, period, period_end_dates)

    # Ordinal positions in the sorted list are the multiquery keys
    dates_by_query_index = to_pacific_midnights(dates, time_zone)
    base_query = create_base_query(period, str(page_object_id).strip(), metrics)
    fql_by_query_index = build_queries(base_query, dates_by_query_index)

    logger.info(
        f"Querying insights for {page_object_id} over {len(fql_by_query_index)} dates",
        extra={"query_count": len(fql_by_query_index)},
    )
    response = client.execute_multiquery(fql_by_query_index)

    result: Dict[datetime, List[Any]] = {}
    for key, rows in response.items():
        # plain ASCII digits only; int() would also take " 0", "+0" and "1_0"
        if not (isinstance(key, str) and key.isascii() and key.isdigit()):
            raise FacebookJsonMappingError(
                f"MultiQuery response had an unexpected key value: {key!r}"
            )
        query_index = int(key)
        if not 0 <= query_index < len(dates_by_query_index):
            raise FacebookJsonMappingError(
                f"MultiQuery response had an unexpected key value: {key!r}"
            )
        result[dates_by_query_index[query_index]] = as_result_array(rows, key)

    return {date: result[date] for date in sorted(result)}


def execute_insight_queries_by_metric_by_date(
    client: "FacebookClient",
    page_object_id: Union[str, int],
    metrics: Optional[Iterable[str]],
    period: Period,
    period_end_dates: Iterable[datetime],
    time_zone: TimeZoneLike = None,
) -> Dict[str, Dict[datetime, Any]]:
    """Rows regrouped as ``{metric: {date: value}}``.

    Only metrics the API actually returned appear as keys. Values are numbers
    for most metrics and JSON objects for per-bucket breakdowns.
    """
    by_date = execute_insight_queries_by_date(
        client, page_object_id, metrics, period, period_end_dates, time_zone
    )
    return reshape_by_metric_by_date(by_date)
