from typing import Optional

import httpx


class SearchError(Exception):
    """A failed search whose message can be shown to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class HttpStatusError(SearchError):
    def __init__(self, message: str, status_code: int, documentation_url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.documentation_url = documentation_url


class TransportError(SearchError):
    """Network, DNS or protocol failure before a response was received."""


class RequestCancelled(Exception):
    """The cycle that issued the request was superseded. Not a user-facing error."""


def normalize(response: httpx.Response) -> HttpStatusError:
    """Turn a non-success GitHub response into an ``HttpStatusError``.

    GitHub error bodies look like ``{"message": ..., "documentation_url": ...}``;
    anything else falls back to ``Request failed (<status>)``.
    """
    status = response.status_code
    message = f"Request failed ({status})"
    documentation_url = None
    try:
        body = response.json()
    except (ValueError, httpx.ResponseNotRead):
        body = None

    if isinstance(body, dict):
        if body.get("message"):
            message = str(body["message"])
        if body.get("documentation_url"):
            documentation_url = str(body["documentation_url"])
            message += f" — {documentation_url}"
    return HttpStatusError(message, status_code=status, documentation_url=documentation_url)


def from_transport(exc: httpx.RequestError) -> TransportError:
    detail = str(exc) or type(exc).__name__
    return TransportError(f"Network error: {detail}")


def invalid_body(response: httpx.Response) -> HttpStatusError:
    """A success status whose body is not a search result page."""
    return HttpStatusError(
        f"Invalid response from GitHub ({response.status_code})",
        status_code=response.status_code,
    )
