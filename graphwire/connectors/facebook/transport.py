"""Graphwire HTTP transport.

The client core never talks to the network directly. It hands finished URLs
and parameter strings to a WebRequestor and gets back a status code and body.
Swap in another WebRequestor to change timeouts, add retries, or test.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from graphwire.config import settings
from graphwire.connectors.facebook.request import BinaryAttachment
from graphwire.core.logging import get_logger

logger = get_logger("facebook.transport")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
ATTACHMENT_FIELD_NAME = "source"


@dataclass(frozen=True)
class Response:
    """HTTP status code and body text of one round trip."""

    status_code: int
    body: str

    def __str__(self) -> str:
        return f"HTTP status code {self.status_code} and response body: {self.body}"


class WebRequestor(ABC):
    """Performs GETs and POSTs on behalf of the client."""

    @abstractmethod
    def get(self, url: str) -> Response:
        ...

    @abstractmethod
    def post(
        self,
        url: str,
        parameter_string: str,
        binary_attachment: Optional[BinaryAttachment] = None,
    ) -> Response:
        ...


def _strip_query(url: str) -> str:
    # Query strings carry credentials; keep them out of the logs.
    return url.split("?", 1)[0]


class DefaultWebRequestor(WebRequestor):
    """Synchronous httpx-backed requestor."""

    def __init__(
        self, timeout: Optional[float] = None, client: Optional[httpx.Client] = None
    ):
        self._client = client or httpx.Client(
            timeout=timeout if timeout is not None else settings.request_timeout
        )

    def close(self) -> None:
        if not self._client.is_closed:
            self._client.close()

    def __enter__(self) -> "DefaultWebRequestor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get(self, url: str) -> Response:
        started = time.monotonic()
        resp = self._client.get(url)
        return self._to_response("GET", url, resp, started)

    def post(
        self,
        url: str,
        parameter_string: str,
        binary_attachment: Optional[BinaryAttachment] = None,
    ) -> Response:
        started = time.monotonic()
        if binary_attachment is None:
            resp = self._client.post(
                url,
                content=parameter_string.encode("utf-8"),
                headers={"Content-Type": FORM_CONTENT_TYPE},
            )
        else:
            # Multipart body holds the file, so parameters travel in the URL
            target = f"{url}?{parameter_string}" if parameter_string else url
            resp = self._client.post(
                target, files={ATTACHMENT_FIELD_NAME: binary_attachment}
            )
        return self._to_response("POST", url, resp, started)

    def _to_response(
        self, http_method: str, url: str, resp: httpx.Response, started: float
    ) -> Response:
        duration_ms = round((time.monotonic() - started) * 1000, 1)
        logger.info(
            f"{http_method} {_strip_query(url)} -> {resp.status_code}",
            extra={
                "endpoint": _strip_query(url),
                "http_method": http_method,
                "status_code": resp.status_code,
                "duration_ms": duration_ms,
            },
        )
        return Response(status_code=resp.status_code, body=resp.text)
