"""Graphwire error taxonomy.

Everything the client raises derives from FacebookError so callers can catch
the whole family at once, or pick out the decoded API errors specifically.
"""

from typing import Optional


class FacebookError(Exception):
    """Base exception for the client."""


class FacebookConfigurationError(FacebookError, ValueError):
    """Caller input is unusable. Raised before any request is sent."""


class FacebookNetworkError(FacebookError):
    """The request failed in transit or came back with an unusable HTTP status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        self.status_code = status_code
        self.cause = cause
        if status_code is not None:
            message = f"{message} (HTTP status code {status_code})"
        super().__init__(message)


class FacebookResponseStatusError(FacebookError):
    """The legacy REST API answered with an error_code/error_msg payload."""

    def __init__(self, error_code: int, error_message: str):
        self.error_code = error_code
        self.error_message = error_message
        super().__init__(f"Received Facebook error response (code {error_code}): {error_message}")


class FacebookGraphError(FacebookError):
    """The Graph API answered with an {"error": {"type", "message"}} payload."""

    def __init__(self, error_type: str, error_message: str):
        self.error_type = error_type
        self.error_message = error_message
        super().__init__(f"Received Facebook error response of type {error_type}: {error_message}")


class FacebookJsonMappingError(FacebookError):
    """JSON could not be decoded or did not fit the requested shape."""
