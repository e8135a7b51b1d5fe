from __future__ import annotations

from urllib.parse import parse_qsl

import pytest

from graphwire.connectors.facebook.auth import AccessTokenAuth, LegacySignatureAuth
from graphwire.connectors.facebook.request import (
    RESERVED_PARAMETER_NAMES,
    RequestBuilder,
    normalize_endpoint,
    normalize_ids,
    to_parameter_string,
    to_parameter_value,
    verify_parameter_legality,
    with_additional_parameter,
)
from graphwire.core.exceptions import FacebookConfigurationError


@pytest.mark.parametrize("name", sorted(RESERVED_PARAMETER_NAMES))
def test_reserved_names_are_rejected(name):
    with pytest.raises(FacebookConfigurationError):
        verify_parameter_legality({name: "x"})


def test_populated_names_explain_themselves():
    with pytest.raises(FacebookConfigurationError, match="list of IDs"):
        verify_parameter_legality({"ids": "1,2"})


def test_blank_parameter_name_is_rejected():
    with pytest.raises(FacebookConfigurationError):
        verify_parameter_legality({" ": "x"})


def test_ordinary_parameters_pass():
    verify_parameter_legality({"fields": "id,name", "limit": 5})
    verify_parameter_legality(None)


def test_parameter_values():
    assert to_parameter_value("abc") == "abc"
    assert to_parameter_value(True) == "true"
    assert to_parameter_value(False) == "false"
    assert to_parameter_value(25) == "25"
    assert to_parameter_value(["a", "b"]) == '["a","b"]'
    assert to_parameter_value({"k": 1}) == '{"k":1}'
    with pytest.raises(FacebookConfigurationError):
        to_parameter_value(None)


def test_with_additional_parameter_detects_duplicates():
    params = with_additional_parameter({"a": "1"}, "b", 2)
    assert params == {"a": "1", "b": "2"}
    with pytest.raises(FacebookConfigurationError):
        with_additional_parameter(params, "a", "3")


def test_normalize_ids_trims_and_lowercases():
    assert normalize_ids([" Me ", "BTAYLOR", "12345"]) == ["me", "btaylor", "12345"]


@pytest.mark.parametrize("ids", [[], ["ok", "  "], None, "me"])
def test_normalize_ids_rejects_bad_input(ids):
    with pytest.raises(FacebookConfigurationError):
        normalize_ids(ids)


def test_parameter_string_encodes_names_and_values_independently():
    encoded = to_parameter_string({"message": "a b&c=d", "x y": "1"})
    assert encoded.count("&") == 1
    assert dict(parse_qsl(encoded)) == {"message": "a b&c=d", "x y": "1"}


def test_normalize_endpoint():
    assert normalize_endpoint("me/feed") == "/me/feed"
    assert normalize_endpoint("  /me ") == "/me"
    assert normalize_endpoint(None) == "/"


def test_graph_get_request():
    builder = RequestBuilder(AccessTokenAuth("tok"), "https://graph.test/", "https://legacy.test")
    request = builder.build("me", parameters={"fields": "id"})

    assert request.http_method == "GET"
    assert request.url == "https://graph.test/me"
    params = list(parse_qsl(request.parameter_string))
    # caller parameters first, credentials last
    assert params == [("fields", "id"), ("format", "json"), ("access_token", "tok")]
    assert request.full_url == f"https://graph.test/me?{request.parameter_string}"


def test_delete_is_post_with_method_override():
    builder = RequestBuilder(AccessTokenAuth("tok"), "https://graph.test", "https://legacy.test")
    request = builder.build("12345", delete=True)

    assert request.http_method == "POST"
    assert dict(parse_qsl(request.parameter_string))["method"] == "delete"


def test_legacy_request_is_signed():
    auth = LegacySignatureAuth("key", "secret", call_id_factory=lambda: "42")
    builder = RequestBuilder(auth, "https://graph.test", "https://legacy.test")
    request = builder.build(
        "fql.query", legacy=True, post=True, internal_parameters={"query": "SELECT 1"}
    )

    assert request.url == "https://legacy.test/fql.query"
    params = list(parse_qsl(request.parameter_string))
    assert params[-1][0] == "sig"
    assert dict(params)["method"] == "fql.query"
    assert dict(params)["format"] == "json"


def test_signature_auth_cannot_call_graph():
    builder = RequestBuilder(
        LegacySignatureAuth("key", "secret"), "https://graph.test", "https://legacy.test"
    )
    with pytest.raises(FacebookConfigurationError):
        builder.build("me")


def test_reserved_parameter_fails_before_building():
    builder = RequestBuilder(AccessTokenAuth("tok"), "https://graph.test", "https://legacy.test")
    with pytest.raises(FacebookConfigurationError):
        builder.build("me", parameters={"access_token": "other"})
