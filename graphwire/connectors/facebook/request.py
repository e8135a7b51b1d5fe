"""Graphwire request building.

Turns an endpoint plus caller parameters into a PreparedRequest: URL, HTTP
verb and URL-encoded parameter string. Caller parameters are validated and
inserted first; everything the client adds afterwards goes through
with_additional_parameter so a collision is caught instead of overwritten.
"""

import json
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import httpx

from graphwire.connectors.facebook.auth import AuthStrategy
from graphwire.core.exceptions import FacebookConfigurationError

METHOD_PARAM_NAME = "method"
FORMAT_PARAM_NAME = "format"
IDS_PARAM_NAME = "ids"
QUERY_PARAM_NAME = "query"
QUERIES_PARAM_NAME = "queries"

RESERVED_PARAMETER_NAMES = frozenset(
    {
        METHOD_PARAM_NAME,
        FORMAT_PARAM_NAME,
        "access_token",
        "api_key",
        "sig",
        "call_id",
        "session_key",
        "v",
        IDS_PARAM_NAME,
        QUERY_PARAM_NAME,
        QUERIES_PARAM_NAME,
    }
)

# Parameters that a specific client method fills in from its own arguments
_POPULATED_BY = {
    IDS_PARAM_NAME: "the list of IDs you passed to this method",
    QUERY_PARAM_NAME: "the query you passed to this method",
    QUERIES_PARAM_NAME: "the queries you passed to this method",
}

BinaryAttachment = Union[BinaryIO, Tuple[str, BinaryIO], Tuple[str, bytes]]


def verify_parameter_presence(name: str, value: Any) -> None:
    """Reject None and blank strings for a required argument."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise FacebookConfigurationError(f"The '{name}' parameter cannot be blank.")


def verify_parameter_legality(
    parameters: Optional[Mapping[str, Any]],
    reserved: Iterable[str] = RESERVED_PARAMETER_NAMES,
) -> None:
    """Fail fast on blank or reserved caller parameter names."""
    if not parameters:
        return
    reserved = frozenset(reserved)
    for name in parameters:
        if not isinstance(name, str) or not name.strip():
            raise FacebookConfigurationError("Parameter names cannot be blank.")
        if name in _POPULATED_BY:
            raise FacebookConfigurationError(
                f"You cannot specify the '{name}' URL parameter yourself - "
                f"it is populated for you with {_POPULATED_BY[name]}."
            )
        if name in reserved:
            raise FacebookConfigurationError(
                f"Parameter '{name}' is reserved and cannot be specified yourself."
            )


def to_parameter_value(value: Any) -> str:
    """Render a parameter value the way the API expects it on the wire."""
    if value is None:
        raise FacebookConfigurationError("Parameter values cannot be None.")
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"))


def with_additional_parameter(
    parameters: Mapping[str, str], name: str, value: Any
) -> Dict[str, str]:
    """Return a copy of parameters with one more entry; duplicates are an error."""
    if name in parameters:
        raise FacebookConfigurationError(f"Parameter '{name}' is already present.")
    result = dict(parameters)
    result[name] = to_parameter_value(value)
    return result


def normalize_ids(ids: Optional[Iterable[str]]) -> List[str]:
    """Trim and lowercase each ID; blank entries and empty lists are rejected."""
    if ids is None:
        raise FacebookConfigurationError("The 'ids' parameter cannot be None.")
    if isinstance(ids, str):
        raise FacebookConfigurationError("The 'ids' parameter must be a list of IDs, not a string.")

    normalized: List[str] = []
    for raw in ids:
        object_id = str(raw).strip().lower() if raw is not None else ""
        if not object_id:
            raise FacebookConfigurationError("The list of IDs cannot contain blank strings.")
        normalized.append(object_id)

    if not normalized:
        raise FacebookConfigurationError("The list of IDs cannot be empty.")
    return normalized


def to_parameter_string(parameters: Mapping[str, str]) -> str:
    """URL-encode each name and value independently and join with '&'."""
    return str(httpx.QueryParams(list(parameters.items())))


def normalize_endpoint(endpoint: Optional[str]) -> str:
    endpoint = (endpoint or "").strip()
    if not endpoint.startswith("/"):
        endpoint = "/" + endpoint
    return endpoint


@dataclass(frozen=True)
class PreparedRequest:
    """Everything the transport needs for one round trip."""

    url: str
    http_method: str  # "GET" | "POST"
    parameter_string: str
    binary_attachment: Optional[BinaryAttachment] = None

    @property
    def full_url(self) -> str:
        """URL with the query string appended, for GET requests."""
        if not self.parameter_string:
            return self.url
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}{self.parameter_string}"


class RequestBuilder:
    """Assembles PreparedRequests for one auth strategy and endpoint pair."""

    def __init__(self, auth: AuthStrategy, graph_endpoint_url: str, legacy_endpoint_url: str):
        self.auth = auth
        self.graph_endpoint_url = graph_endpoint_url.rstrip("/")
        self.legacy_endpoint_url = legacy_endpoint_url.rstrip("/")
        self.reserved_parameter_names = RESERVED_PARAMETER_NAMES | auth.reserved_parameter_names

    def build(
        self,
        endpoint: str,
        *,
        legacy: bool = False,
        post: bool = False,
        delete: bool = False,
        parameters: Optional[Mapping[str, Any]] = None,
        internal_parameters: Optional[Mapping[str, Any]] = None,
        binary_attachment: Optional[BinaryAttachment] = None,
    ) -> PreparedRequest:
        """Merge, sign and encode the parameters for one call.

        Graph deletes are sent as a POST carrying ``method=delete`` because
        the API only accepts GET and POST.
        """
        verify_parameter_legality(parameters, self.reserved_parameter_names)

        if not legacy and not self.auth.supports_graph:
            raise FacebookConfigurationError(
                f"{type(self.auth).__name__} cannot authenticate Graph API requests; "
                "use an access token instead."
            )

        # ── Caller parameters first ──
        merged: Dict[str, str] = {}
        for name, value in (parameters or {}).items():
            merged[name] = to_parameter_value(value)

        # ── Then client-populated parameters ──
        for name, value in (internal_parameters or {}).items():
            merged = with_additional_parameter(merged, name, value)

        if delete:
            merged = with_additional_parameter(merged, METHOD_PARAM_NAME, "delete")
            post = True

        merged = with_additional_parameter(merged, FORMAT_PARAM_NAME, "json")

        endpoint = normalize_endpoint(endpoint)
        method_name = endpoint.lstrip("/") if legacy else None

        # ── Credentials last (the legacy signature covers everything above) ──
        merged = self.auth.apply(merged, method_name)

        base_url = self.legacy_endpoint_url if legacy else self.graph_endpoint_url
        return PreparedRequest(
            url=base_url + endpoint,
            http_method="POST" if post else "GET",
            parameter_string=to_parameter_string(merged),
            binary_attachment=binary_attachment,
        )
