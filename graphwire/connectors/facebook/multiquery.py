"""Graphwire FQL multiquery reshaping.

``fql.multiquery`` answers with one envelope per named query::

    [{"name": "q1", "fql_result_set": [...]}, {"name": "q2", "fql_result_set": {}}]

normalize_multiquery_response flattens that into ``{"q1": [...], "q2": []}``
(an empty result set sometimes arrives as ``{}``), and
reshape_by_metric_by_date pivots insights rows into metric -> date -> value.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from graphwire.core.exceptions import FacebookConfigurationError, FacebookJsonMappingError
from graphwire.mapping.json_mapper import describe_validation_error
from graphwire.models.facebook_types import MetricValue

QUERY_NAME_ATTRIBUTE_NAME = "name"
RESULT_SET_ATTRIBUTE_NAME = "fql_result_set"


def queries_to_json(queries: Mapping[str, str]) -> str:
    """Encode named queries as the JSON object the ``queries`` parameter takes."""
    if not queries:
        raise FacebookConfigurationError("At least one query is required for a multiquery.")
    for name, query in queries.items():
        if not isinstance(name, str) or not name.strip():
            raise FacebookConfigurationError("Multiquery names cannot be blank.")
        if not isinstance(query, str) or not query.strip():
            raise FacebookConfigurationError(f"Query '{name}' cannot be blank.")
    return json.dumps(dict(queries), separators=(",", ":"))


def as_result_array(value: Any, key: str) -> List[Any]:
    """Return a result set as a list; ``{}`` or null means no rows."""
    if isinstance(value, list):
        return value
    if value is None or value == {}:
        return []
    raise FacebookJsonMappingError(
        f"Multiquery result for '{key}' is not an array: {value!r}"
    )


def normalize_multiquery_response(payload: Any) -> Dict[str, List[Any]]:
    """Unwrap the name/result-set envelopes into a name-keyed mapping."""
    if not isinstance(payload, list):
        raise FacebookJsonMappingError(
            f"Unable to process fql.multiquery JSON response: expected an array, got {payload!r}"
        )

    normalized: Dict[str, List[Any]] = {}
    for index, element in enumerate(payload):
        if not isinstance(element, dict) or not isinstance(
            element.get(QUERY_NAME_ATTRIBUTE_NAME), str
        ):
            raise FacebookJsonMappingError(
                f"Unable to process fql.multiquery JSON response: element {index} "
                f"is not a named result set: {element!r}"
            )
        name = element[QUERY_NAME_ATTRIBUTE_NAME]
        if name in normalized:
            raise FacebookJsonMappingError(
                f"Unable to process fql.multiquery JSON response: query '{name}' "
                "appears more than once"
            )
        result_set = element.get(RESULT_SET_ATTRIBUTE_NAME)
        normalized[name] = result_set if isinstance(result_set, list) else []
    return normalized


def reshape_by_metric_by_date(
    results_by_date: Mapping[datetime, Any],
) -> Dict[str, Dict[datetime, Any]]:
    """Pivot ``{date: [{"metric", "value"}, ...]}`` into ``{metric: {date: value}}``.

    A metric appearing twice for the same date is a protocol violation and
    raises instead of keeping either value.
    """
    by_metric: Dict[str, Dict[datetime, Any]] = {}
    for date in sorted(results_by_date):
        for element in as_result_array(results_by_date[date], str(date)):
            try:
                row = MetricValue.model_validate(element)
            except ValidationError as e:
                raise FacebookJsonMappingError(
                    f"Could not decode insights result {element!r} for {date.isoformat()}: "
                    f"{describe_validation_error(e)}"
                ) from e

            by_date = by_metric.setdefault(row.metric, {})
            if date in by_date:
                raise FacebookJsonMappingError(
                    f"Multiquery response has two results for metric '{row.metric}' "
                    f"and date {date.isoformat()}"
                )
            by_date[date] = row.value

    return {metric: by_metric[metric] for metric in sorted(by_metric)}
