from __future__ import annotations

"""
Exception taxonomy shared by the forum client and the user-data store client.

Nothing here is retried. Every error reaches the caller as-is; it is up to
the caller to decide whether a failure is worth surfacing (primary content)
or only worth logging (favorites, history, subscriptions).
"""


class V2EXError(Exception):
    """Base class for every error raised by the access layer."""


class InvalidURL(V2EXError):
    """The target URL could not be built or prepared."""


class InvalidResponse(V2EXError):
    """
    The response was unusable: no status code, or an envelope that
    reported success over HTTP but carried no result.
    """


class Unauthorized(V2EXError):
    """HTTP 401: the credential is missing, expired or revoked."""


class RateLimitExceeded(V2EXError):
    """HTTP 429."""


class DecodingError(V2EXError):
    """A 2xx body did not match the expected payload shape."""


class NetworkError(V2EXError):
    """The request failed before any response was obtained."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"network error: {cause}")
        self.cause = cause


class ServerError(V2EXError):
    """Any other non-2xx status. `detail` is the body text (or a status line)."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail
