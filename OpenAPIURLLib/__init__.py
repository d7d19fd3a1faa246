"""OpenAPIURLLib - A urllib-based client transport for generated API clients."""

# Import key classes for easier access
from .base import ClientTransport, Session
from .body import HTTPBody, IterationBehavior
from .exceptions import (
    TransportError,
    InvalidRequestURLError,
    NotHTTPResponseError,
    NoResponseError,
    BodyError,
    TooManyBytesError,
    BodyAlreadyIteratedError
)
from .models import Method, HTTPFieldName, HTTPField, HTTPFields, HTTPRequest, HTTPResponse
from .transport import Configuration, URLLibTransport

__version__ = "0.1.0"
