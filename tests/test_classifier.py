from __future__ import annotations

import pytest

from graphwire.connectors.facebook.classifier import process_response
from graphwire.connectors.facebook.transport import Response
from graphwire.core.exceptions import (
    FacebookGraphError,
    FacebookJsonMappingError,
    FacebookNetworkError,
    FacebookResponseStatusError,
)


def test_success_body_is_returned():
    assert process_response(Response(200, '{"id":"1"}')) == '{"id":"1"}'


def test_array_body_is_not_inspected():
    assert process_response(Response(200, "[]")) == "[]"


def test_400_without_error_payload_is_a_success():
    assert process_response(Response(400, "true")) == "true"


@pytest.mark.parametrize("status", [200, 400, 401, 500])
def test_legacy_error_payload(status):
    body = '{"error_code": 190, "error_msg": "Invalid OAuth 2.0 Access Token"}'
    with pytest.raises(FacebookResponseStatusError) as exc:
        process_response(Response(status, body))
    assert exc.value.error_code == 190
    assert exc.value.error_message == "Invalid OAuth 2.0 Access Token"


@pytest.mark.parametrize("status", [200, 400, 401, 500])
def test_graph_error_payload(status):
    body = '{"error": {"type": "OAuthException", "message": "Error validating access token"}}'
    with pytest.raises(FacebookGraphError) as exc:
        process_response(Response(status, body))
    assert exc.value.error_type == "OAuthException"
    assert exc.value.error_message == "Error validating access token"


@pytest.mark.parametrize("status", [401, 500])
def test_401_and_500_without_payload(status):
    with pytest.raises(FacebookNetworkError) as exc:
        process_response(Response(status, "<html>oops</html>"))
    assert exc.value.status_code == status


def test_500_with_undecodable_object_is_a_network_error():
    with pytest.raises(FacebookNetworkError):
        process_response(Response(500, "{not json"))


def test_200_with_malformed_object_is_a_mapping_error():
    with pytest.raises(FacebookJsonMappingError):
        process_response(Response(200, "{not json"))


@pytest.mark.parametrize("status", [302, 403, 404, 503])
def test_unrecognized_status_fails_without_parsing(status):
    body = '{"error": {"type": "OAuthException", "message": "ignored"}}'
    with pytest.raises(FacebookNetworkError) as exc:
        process_response(Response(status, body))
    assert exc.value.status_code == status


def test_error_attribute_must_be_an_object():
    with pytest.raises(FacebookJsonMappingError):
        process_response(Response(200, '{"error": "nope"}'))
