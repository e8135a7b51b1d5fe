from __future__ import annotations

from urllib.parse import parse_qsl, urlsplit

import pytest

from graphwire.connectors.facebook.auth import AccessTokenAuth
from graphwire.connectors.facebook.client import FacebookClient
from graphwire.connectors.facebook.transport import Response, WebRequestor

GRAPH_URL = "https://graph.example.test"
LEGACY_URL = "https://api.example.test/method"


class FakeWebRequestor(WebRequestor):
    """Records every request and answers with queued responses."""

    def __init__(self, *responses: Response):
        self.responses = list(responses)
        self.calls: list[dict] = []

    def queue(self, status_code: int, body: str) -> None:
        self.responses.append(Response(status_code=status_code, body=body))

    def _next(self) -> Response:
        if not self.responses:
            raise AssertionError("No response queued")
        return self.responses.pop(0)

    def get(self, url: str) -> Response:
        self.calls.append({"method": "GET", "url": url})
        return self._next()

    def post(self, url, parameter_string, binary_attachment=None) -> Response:
        self.calls.append(
            {
                "method": "POST",
                "url": url,
                "body": parameter_string,
                "attachment": binary_attachment,
            }
        )
        return self._next()

    @property
    def last_call(self) -> dict:
        return self.calls[-1]

    @property
    def last_params(self) -> dict[str, str]:
        call = self.last_call
        encoded = call["body"] if call["method"] == "POST" else urlsplit(call["url"]).query
        return dict(parse_qsl(encoded, keep_blank_values=True))


@pytest.fixture
def requestor() -> FakeWebRequestor:
    return FakeWebRequestor()


@pytest.fixture
def client(requestor: FakeWebRequestor) -> FacebookClient:
    return FacebookClient(
        auth=AccessTokenAuth("token-123"),
        web_requestor=requestor,
        graph_endpoint_url=GRAPH_URL,
        legacy_endpoint_url=LEGACY_URL,
    )
