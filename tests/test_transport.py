from __future__ import annotations

import io

import httpx

from graphwire.connectors.facebook.transport import DefaultWebRequestor, Response


def _requestor(handler) -> DefaultWebRequestor:
    return DefaultWebRequestor(client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_get_returns_status_and_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        return httpx.Response(200, text='{"id":"1"}')

    with _requestor(handler) as requestor:
        response = requestor.get("https://graph.test/me?format=json")

    assert response == Response(status_code=200, body='{"id":"1"}')
    assert seen == {"method": "GET", "url": "https://graph.test/me?format=json"}


def test_post_sends_form_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = request.content.decode()
        return httpx.Response(400, text='{"error_code":1,"error_msg":"x"}')

    requestor = _requestor(handler)
    response = requestor.post("https://graph.test/me/feed", "message=hi&format=json")

    assert response.status_code == 400
    assert seen["content_type"] == "application/x-www-form-urlencoded"
    assert seen["body"] == "message=hi&format=json"


def test_post_with_attachment_moves_parameters_to_query_string():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["query"] = request.url.query.decode()
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = request.read()
        return httpx.Response(200, text='{"id":"photo"}')

    requestor = _requestor(handler)
    attachment = ("cat.png", io.BytesIO(b"PNGDATA"))
    requestor.post("https://graph.test/me/photos", "message=cat", attachment)

    assert seen["query"] == "message=cat"
    assert seen["content_type"].startswith("multipart/form-data")
    assert b'name="source"' in seen["body"]
    assert b"PNGDATA" in seen["body"]
