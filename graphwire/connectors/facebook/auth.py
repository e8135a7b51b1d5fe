"""Graphwire authentication strategies.

A client is parameterized by exactly one strategy, chosen at construction:

* AccessTokenAuth attaches an OAuth2 bearer token (Graph API and legacy
  endpoint both accept it).
* LegacySignatureAuth signs every request the way the old REST API expects:
  all parameters sorted by name, concatenated as ``name=value`` with no
  separator, followed by the application secret, hashed and hex-encoded into
  ``sig``.

The signature digest defaults to MD5. It is a weak hash, but it is the one the
legacy endpoint verifies, so changing it breaks every signed call.
"""

import hashlib
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, FrozenSet, Mapping, Optional

from graphwire.config import settings
from graphwire.core.exceptions import FacebookConfigurationError

ACCESS_TOKEN_PARAM_NAME = "access_token"
METHOD_PARAM_NAME = "method"
API_KEY_PARAM_NAME = "api_key"
SIGNATURE_PARAM_NAME = "sig"
CALL_ID_PARAM_NAME = "call_id"
SESSION_KEY_PARAM_NAME = "session_key"
VERSION_PARAM_NAME = "v"


def generate_signature(
    parameters: Mapping[str, str], secret_key: str, digest: str = "md5"
) -> str:
    """Compute the legacy ``sig`` value for an already final parameter set."""
    payload = "".join(f"{name}={parameters[name]}" for name in sorted(parameters))
    payload += secret_key
    try:
        hasher = hashlib.new(digest, usedforsecurity=False)
    except ValueError as e:
        raise FacebookConfigurationError(f"Unsupported signature digest '{digest}'") from e
    hasher.update(payload.encode("utf-8"))
    return hasher.hexdigest()


def _current_millis() -> str:
    return str(int(time.time() * 1000))


class AuthStrategy(ABC):
    """Adds credentials to an outgoing parameter set."""

    #: Names the strategy writes itself; callers may not supply them.
    reserved_parameter_names: FrozenSet[str] = frozenset()

    #: Whether requests against the Graph endpoint can be authenticated.
    supports_graph: bool = True

    @abstractmethod
    def apply(
        self, parameters: Dict[str, str], method_name: Optional[str] = None
    ) -> Dict[str, str]:
        """Return the final parameter mapping, credentials included.

        ``method_name`` is the legacy REST method (e.g. ``fql.query``) for
        legacy-endpoint calls and ``None`` for Graph calls.
        """
        ...


class AccessTokenAuth(AuthStrategy):
    """Bearer-token mode: parameters are sent as-is plus ``access_token``."""

    reserved_parameter_names = frozenset({ACCESS_TOKEN_PARAM_NAME})

    def __init__(self, access_token: Optional[str] = None):
        token = access_token if access_token is not None else settings.access_token
        self.access_token = token.strip() or None

    def apply(
        self, parameters: Dict[str, str], method_name: Optional[str] = None
    ) -> Dict[str, str]:
        result = dict(parameters)
        # Without a token only public graph data is reachable; send nothing.
        if self.access_token:
            if ACCESS_TOKEN_PARAM_NAME in result:
                raise FacebookConfigurationError(
                    f"Parameter '{ACCESS_TOKEN_PARAM_NAME}' is already present"
                )
            result[ACCESS_TOKEN_PARAM_NAME] = self.access_token
        return result

    def __repr__(self) -> str:
        return f"<AccessTokenAuth token={'set' if self.access_token else 'none'}>"


class LegacySignatureAuth(AuthStrategy):
    """Signed legacy REST mode (api_key + secret, optional session key)."""

    reserved_parameter_names = frozenset(
        {
            METHOD_PARAM_NAME,
            API_KEY_PARAM_NAME,
            SIGNATURE_PARAM_NAME,
            CALL_ID_PARAM_NAME,
            SESSION_KEY_PARAM_NAME,
            VERSION_PARAM_NAME,
        }
    )
    supports_graph = False

    def __init__(
        self,
        api_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        session_key: Optional[str] = None,
        digest: Optional[str] = None,
        api_version: Optional[str] = None,
        call_id_factory: Optional[Callable[[], str]] = None,
    ):
        api_key = api_key if api_key is not None else settings.api_key
        secret_key = secret_key if secret_key is not None else settings.secret_key
        if not api_key.strip():
            raise FacebookConfigurationError("api_key is required for signed requests")
        if not secret_key.strip():
            raise FacebookConfigurationError("secret_key is required for signed requests")

        self.api_key = api_key.strip()
        self.secret_key = secret_key.strip()
        self.session_key = session_key.strip() if session_key and session_key.strip() else None
        self.digest = digest or settings.signature_digest
        self.api_version = api_version or settings.legacy_api_version
        self.call_id_factory = call_id_factory or _current_millis

        # Fail now rather than on the first request
        if self.digest not in hashlib.algorithms_available:
            raise FacebookConfigurationError(f"Unsupported signature digest '{self.digest}'")

    def apply(
        self, parameters: Dict[str, str], method_name: Optional[str] = None
    ) -> Dict[str, str]:
        if not method_name:
            raise FacebookConfigurationError(
                "Signed requests are only supported against the legacy REST endpoint"
            )

        result = dict(parameters)
        mandatory = {
            METHOD_PARAM_NAME: method_name,
            API_KEY_PARAM_NAME: self.api_key,
            VERSION_PARAM_NAME: self.api_version,
            CALL_ID_PARAM_NAME: self.call_id_factory(),
        }
        if self.session_key:
            mandatory[SESSION_KEY_PARAM_NAME] = self.session_key

        for name, value in mandatory.items():
            if name in result:
                raise FacebookConfigurationError(f"Parameter '{name}' is already present")
            result[name] = value

        # Must be last: the signature covers everything above.
        result[SIGNATURE_PARAM_NAME] = generate_signature(result, self.secret_key, self.digest)
        return result

    def __repr__(self) -> str:
        return f"<LegacySignatureAuth api_key={self.api_key} digest={self.digest}>"
