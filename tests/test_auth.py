from __future__ import annotations

import hashlib

import pytest

from graphwire.connectors.facebook.auth import (
    AccessTokenAuth,
    LegacySignatureAuth,
    generate_signature,
)
from graphwire.core.exceptions import FacebookConfigurationError


def test_generate_signature_sorts_and_appends_secret():
    params = {"v": "1.0", "api_key": "key", "method": "fql.query"}
    expected = hashlib.md5(b"api_key=keymethod=fql.queryv=1.0secret").hexdigest()
    assert generate_signature(params, "secret") == expected


def test_generate_signature_with_other_digest():
    params = {"b": "2", "a": "1"}
    expected = hashlib.sha256(b"a=1b=2secret").hexdigest()
    assert generate_signature(params, "secret", digest="sha256") == expected


def test_generate_signature_unknown_digest():
    with pytest.raises(FacebookConfigurationError):
        generate_signature({"a": "1"}, "secret", digest="not-a-hash")


def test_access_token_auth_appends_token():
    params = AccessTokenAuth("abc").apply({"fields": "id"})
    assert params == {"fields": "id", "access_token": "abc"}


def test_access_token_auth_without_token_sends_nothing():
    params = AccessTokenAuth("   ").apply({"fields": "id"})
    assert params == {"fields": "id"}


def test_legacy_signature_is_computed_over_final_parameters():
    auth = LegacySignatureAuth(
        "key", "secret", session_key="sess", call_id_factory=lambda: "1000"
    )
    params = auth.apply({"query": "SELECT 1", "format": "json"}, "fql.query")

    assert list(params)[-1] == "sig"
    assert params["method"] == "fql.query"
    assert params["api_key"] == "key"
    assert params["v"] == "1.0"
    assert params["call_id"] == "1000"
    assert params["session_key"] == "sess"

    unsigned = {name: value for name, value in params.items() if name != "sig"}
    assert params["sig"] == generate_signature(unsigned, "secret")


def test_legacy_signature_omits_missing_session_key():
    auth = LegacySignatureAuth("key", "secret", call_id_factory=lambda: "1")
    params = auth.apply({}, "users.getInfo")
    assert "session_key" not in params


def test_legacy_signature_rejects_graph_requests():
    auth = LegacySignatureAuth("key", "secret")
    assert auth.supports_graph is False
    with pytest.raises(FacebookConfigurationError):
        auth.apply({}, None)


def test_legacy_signature_requires_credentials():
    with pytest.raises(FacebookConfigurationError):
        LegacySignatureAuth("", "secret")
    with pytest.raises(FacebookConfigurationError):
        LegacySignatureAuth("key", " ")


def test_legacy_signature_rejects_unknown_digest_at_construction():
    with pytest.raises(FacebookConfigurationError):
        LegacySignatureAuth("key", "secret", digest="whirlpool-9000")


def test_legacy_signature_detects_duplicate_mandatory_parameter():
    auth = LegacySignatureAuth("key", "secret")
    with pytest.raises(FacebookConfigurationError):
        auth.apply({"api_key": "other"}, "fql.query")
