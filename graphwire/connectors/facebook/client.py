"""Graphwire Facebook API client.

One synchronous client for both protocols. Graph API calls go to the Graph
endpoint; FQL and legacy REST methods go to the legacy endpoint. How requests
are authenticated (bearer token or legacy signature) is decided by the
AuthStrategy given at construction.

Every public method performs at most one round trip and keeps no state
between calls. Nothing is retried.
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

import httpx

from graphwire.config import settings
from graphwire.connectors.facebook.auth import AccessTokenAuth, AuthStrategy, LegacySignatureAuth
from graphwire.connectors.facebook.classifier import process_response
from graphwire.connectors.facebook.multiquery import (
    normalize_multiquery_response,
    queries_to_json,
)
from graphwire.connectors.facebook.request import (
    IDS_PARAM_NAME,
    QUERIES_PARAM_NAME,
    QUERY_PARAM_NAME,
    BinaryAttachment,
    PreparedRequest,
    RequestBuilder,
    normalize_ids,
    verify_parameter_presence,
)
from graphwire.connectors.facebook.transport import DefaultWebRequestor, Response, WebRequestor
from graphwire.core.exceptions import FacebookJsonMappingError, FacebookNetworkError
from graphwire.core.logging import get_logger
from graphwire.mapping.json_mapper import JsonMapper
from graphwire.models.facebook_types import Connection

logger = get_logger("facebook.client")

T = TypeVar("T")

FQL_QUERY_METHOD = "fql.query"
FQL_MULTIQUERY_METHOD = "fql.multiquery"


class FacebookClient:
    """Typed access to the Graph API, FQL and the legacy REST API."""

    def __init__(
        self,
        auth: Optional[AuthStrategy] = None,
        web_requestor: Optional[WebRequestor] = None,
        json_mapper: Optional[JsonMapper] = None,
        graph_endpoint_url: Optional[str] = None,
        legacy_endpoint_url: Optional[str] = None,
    ):
        self.auth = auth or AccessTokenAuth()
        self.web_requestor = web_requestor or DefaultWebRequestor()
        self.json_mapper = json_mapper or JsonMapper()
        self.request_builder = RequestBuilder(
            self.auth,
            graph_endpoint_url or settings.graph_endpoint_url,
            legacy_endpoint_url or settings.legacy_endpoint_url,
        )

    @classmethod
    def with_access_token(cls, access_token: str, **kwargs: Any) -> "FacebookClient":
        return cls(auth=AccessTokenAuth(access_token), **kwargs)

    @classmethod
    def with_legacy_signature(
        cls,
        api_key: str,
        secret_key: str,
        session_key: Optional[str] = None,
        **kwargs: Any,
    ) -> "FacebookClient":
        """Client for the signed legacy REST API (FQL and REST methods only)."""
        return cls(auth=LegacySignatureAuth(api_key, secret_key, session_key), **kwargs)

    # ── Graph API: reads ──

    def fetch_object(
        self,
        object_id: str,
        object_type: Optional[Type[T]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> T:
        """Fetch one Graph object, e.g. ``fetch_object("me", User)``."""
        verify_parameter_presence("object_id", object_id)
        body = self._make_request(object_id, parameters=params)
        return self.json_mapper.to_object(body, object_type)

    def fetch_objects(
        self,
        ids: List[str],
        object_type: Optional[Type[T]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> T:
        """Fetch several objects in one call.

        The response is a JSON object keyed by (normalized) ID, so
        ``object_type`` describes that whole object, e.g. ``Dict[str, Page]``.
        """
        normalized = normalize_ids(ids)
        body = self._make_request(
            "",
            parameters=params,
            internal_parameters={IDS_PARAM_NAME: ",".join(normalized)},
        )
        return self.json_mapper.to_object(body, object_type)

    def fetch_connection(
        self,
        connection: str,
        connection_type: Optional[Type[T]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Connection[T]:
        """Fetch the first page of a connection, e.g. ``"me/feed"``."""
        verify_parameter_presence("connection", connection)
        body = self._make_request(connection, parameters=params)
        return self.json_mapper.to_connection(body, connection_type)

    def fetch_connection_page(
        self, connection_page_url: str, connection_type: Optional[Type[T]] = None
    ) -> Connection[T]:
        """Follow a ``previous``/``next`` URL taken from an earlier page.

        Paging URLs already carry every parameter, credentials included, so
        they are requested verbatim.
        """
        verify_parameter_presence("connection_page_url", connection_page_url)
        body = self._execute(
            PreparedRequest(url=connection_page_url, http_method="GET", parameter_string="")
        )
        return self.json_mapper.to_connection(body, connection_type)

    # ── Graph API: writes ──

    def publish(
        self,
        connection: str,
        object_type: Optional[Type[T]] = None,
        params: Optional[Mapping[str, Any]] = None,
        binary_attachment: Optional[BinaryAttachment] = None,
    ) -> T:
        """POST to a connection, e.g. ``publish("me/feed", FacebookType, {"message": "hi"})``."""
        verify_parameter_presence("connection", connection)
        body = self._make_request(
            connection, post=True, parameters=params, binary_attachment=binary_attachment
        )
        return self.json_mapper.to_object(body, object_type)

    def delete_object(self, object_id: str) -> bool:
        """Delete a Graph object. True when the API confirms the deletion."""
        verify_parameter_presence("object_id", object_id)
        body = self._make_request(object_id, delete=True)
        return body.strip() == "true"

    # ── FQL and legacy REST ──

    def execute_query(
        self,
        query: str,
        object_type: Optional[Type[T]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[T]:
        """Run one FQL query; each result row is mapped to ``object_type``."""
        verify_parameter_presence("query", query)
        body = self._make_request(
            FQL_QUERY_METHOD,
            legacy=True,
            post=True,
            parameters=params,
            internal_parameters={QUERY_PARAM_NAME: query},
        )
        return self.json_mapper.to_list(body, object_type)

    def execute_multiquery(
        self,
        queries: Mapping[str, str],
        object_type: Optional[Type[T]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> T:
        """Run several named FQL queries in one round trip.

        The result is a mapping of query name to result rows, mapped onto
        ``object_type`` (a model whose fields are the query names, or e.g.
        ``Dict[str, List[Page]]``). Without a type the plain mapping is
        returned.
        """
        queries_json = queries_to_json(queries)
        body = self._make_request(
            FQL_MULTIQUERY_METHOD,
            legacy=True,
            post=True,
            parameters=params,
            internal_parameters={QUERIES_PARAM_NAME: queries_json},
        )
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise FacebookJsonMappingError(
                f"Unable to process fql.multiquery JSON response: {e}"
            ) from e
        normalized = normalize_multiquery_response(payload)
        logger.info(
            f"Multiquery returned {len(normalized)} result sets",
            extra={"query_count": len(queries)},
        )
        return self.json_mapper.convert(normalized, object_type)

    def execute(
        self,
        method: str,
        object_type: Optional[Type[T]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> T:
        """Call a legacy REST method by name, e.g. ``execute("users.getInfo", ...)``."""
        verify_parameter_presence("method", method)
        body = self._make_request(method, legacy=True, post=True, parameters=params)
        return self.json_mapper.to_object(body, object_type)

    # ── Core Request Method ──

    def _make_request(
        self,
        endpoint: str,
        *,
        legacy: bool = False,
        post: bool = False,
        delete: bool = False,
        parameters: Optional[Mapping[str, Any]] = None,
        internal_parameters: Optional[Dict[str, Any]] = None,
        binary_attachment: Optional[BinaryAttachment] = None,
    ) -> str:
        request = self.request_builder.build(
            endpoint,
            legacy=legacy,
            post=post,
            delete=delete,
            parameters=parameters,
            internal_parameters=internal_parameters,
            binary_attachment=binary_attachment,
        )
        return self._execute(request)

    def _execute(self, request: PreparedRequest) -> str:
        """Send a prepared request and classify the response."""
        try:
            if request.http_method == "POST":
                response: Response = self.web_requestor.post(
                    request.url, request.parameter_string, request.binary_attachment
                )
            else:
                response = self.web_requestor.get(request.full_url)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            raise FacebookNetworkError("Facebook request failed", cause=e) from e

        logger.info(
            f"Facebook responded with HTTP status code {response.status_code}",
            extra={"endpoint": request.url.split("?", 1)[0], "status_code": response.status_code},
        )
        return process_response(response)
