from typing import Any, Optional

from .models import Method


# Exceptions
class TransportError(Exception):
    """Base exception for errors raised by the transport itself."""
    pass


class InvalidRequestURLError(TransportError):
    """Raised when the base URL and request path do not compose into a valid URL."""
    def __init__(self, path: str, method: Method, base_url: str):
        self.path = path
        self.method = method
        self.base_url = base_url
        super().__init__(
            f"Invalid request URL from request path: {path}, method: {method}, "
            f"relative to base URL: {base_url}"
        )


class NotHTTPResponseError(TransportError):
    """Raised when the session returns a response that is not an HTTP response."""
    def __init__(self, response: Any):
        self.response = response
        super().__init__(f"Received a non-HTTP response, of type: {type(response).__name__}")


class NoResponseError(TransportError):
    """Raised when the session reports neither an error nor a response."""
    def __init__(self, url: Optional[str] = None):
        self.url = url
        super().__init__(f"Received a nil response for {url or '<nil URL>'}")


class BodyError(TransportError):
    """Base class for misuse of an HTTP body."""
    pass


class TooManyBytesError(BodyError):
    """Raised when collecting a body would exceed the allowed byte count."""
    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        super().__init__(f"Body contains more than the maximum allowed {max_bytes} bytes")


class BodyAlreadyIteratedError(BodyError):
    """Raised when a single-iteration body is iterated a second time."""
    def __init__(self):
        super().__init__("Body was already iterated and does not support multiple iterations")
