"""urllib-backed client transport for generated API clients."""

import asyncio
import http.client
import logging
import sys
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from .base import ClientTransport, Session
from .body import HTTPBody
from .exceptions import InvalidRequestURLError, NoResponseError, NotHTTPResponseError
from .models import HTTPFieldName, HTTPFields, HTTPRequest, HTTPResponse, Method
from .utils import compose_url, has_query, parse_url_components

logger = logging.getLogger(__name__)

# urllib raises non-2xx responses as HTTPError, which is itself a full response
_HTTP_RESPONSE_TYPES = (http.client.HTTPResponse, urllib.error.HTTPError)

# Methods whose responses never carry a meaningful entity
_BODILESS_RESPONSE_METHODS = frozenset({Method.HEAD, Method.CONNECT, Method.TRACE})


@dataclass
class Configuration:
    """A set of configuration values for the transport.

    Attributes:
        session: The session used for performing HTTP operations. Defaults to
            the process-wide ``Session.shared()``.
    """
    session: Session = field(default_factory=Session.shared)


class URLLibTransport(ClientTransport):
    """A client transport that performs HTTP operations through a urllib ``Session``.

    Instantiate the transport and hand it to a generated client together with
    the server URL::

        transport = URLLibTransport()
        client = Client(server_url="https://api.example.com/v1", transport=transport)

    Provide a custom session to change timeouts, proxies, or opener handlers::

        session = Session(opener=urllib.request.build_opener(auth_handler), timeout=5)
        transport = URLLibTransport(Configuration(session=session))

    Connection handling, TLS, redirects and timeouts all belong to the session.
    The transport only converts between the abstract and urllib types and
    retries nothing.
    """

    def __init__(self, configuration: Optional[Configuration] = None):
        self.configuration = configuration or Configuration()

    async def send(self, request: HTTPRequest, body: Optional[HTTPBody], base_url: str,
                   operation_id: str) -> Tuple[HTTPResponse, Optional[HTTPBody]]:
        """Send an HTTP request and return the response and its body.

        Args:
            request: The HTTP request to be sent.
            body: The HTTP body to include in the request, if any.
            base_url: The base URL the request path is appended to.
            operation_id: Identifier of the API operation, used for diagnostics only.

        Returns:
            The HTTP response and its body. The body is ``None`` for HEAD,
            CONNECT and TRACE requests.

        Raises:
            InvalidRequestURLError: The base URL and request path do not form a valid URL.
            NoResponseError: The session reported neither a response nor an error.
            NotHTTPResponseError: The session returned a non-HTTP response.
            Any error reported by the session is raised unchanged.
        """
        start_time = time.monotonic()
        url_request = await build_url_request(request, body, base_url)
        logger.debug(f"Sending {url_request.get_method()} {url_request.full_url} ({operation_id})")
        try:
            data, url_response = await self._invoke_session(url_request)
        except Exception as error:
            logger.debug(f"Request {url_request.full_url} ({operation_id}) failed: {error!r}")
            raise
        response, response_body = build_response(request.method, url_response, data)

        elapsed = time.monotonic() - start_time
        logger.debug(f"Received {response.status} for {operation_id} ({elapsed:.3f}s)")
        return response, response_body

    async def _invoke_session(self, url_request: urllib.request.Request) -> Tuple[bytes, Any]:
        # The session reports from a worker thread; hop back onto this loop and
        # resolve the future once.
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def resume(data, response, error):
            if future.cancelled():
                return
            if future.done():
                logger.warning(f"Ignoring repeated completion for {url_request.full_url}")
                return
            if error is not None:
                future.set_exception(error)
            elif response is None:
                future.set_exception(NoResponseError(url=url_request.full_url))
            else:
                future.set_result((data if data is not None else b"", response))

        def completion_handler(data, response, error):
            try:
                loop.call_soon_threadsafe(resume, data, response, error)
            except RuntimeError:
                logger.debug(f"Event loop closed before {url_request.full_url} completed")

        self.configuration.session.submit(url_request, completion_handler)
        return await future


async def build_url_request(request: HTTPRequest, body: Optional[HTTPBody],
                            base_url: str) -> urllib.request.Request:
    """Build the urllib request for ``request`` relative to ``base_url``.

    The request path is appended to the base URL's path without re-encoding,
    and the request body, if any, is read fully into memory.
    """
    raw_path = request.path or ""
    try:
        base_components = parse_url_components(base_url)
        request_components = parse_url_components(raw_path)
    except ValueError as error:
        path = request.path if request.path is not None else "<nil>"
        raise InvalidRequestURLError(path, request.method, base_url) from error

    path = request_components.path
    try:
        url = compose_url(base_components, request_components, keep_empty_query=has_query(raw_path))
        url_request = urllib.request.Request(url, method=request.method.value)
    except ValueError as error:
        raise InvalidRequestURLError(path, request.method, base_url) from error

    for header in request.header_fields:
        # urllib keys headers by their capitalized name
        existing = url_request.get_header(header.name.canonical_name.capitalize())
        value = header.value if existing is None else f"{existing}, {header.value}"
        url_request.add_header(header.name.canonical_name, value)

    if body is not None:
        url_request.data = await body.collect(up_to=sys.maxsize)

    return url_request


def build_response(method: Method, url_response: Any, data: bytes) -> Tuple[HTTPResponse, Optional[HTTPBody]]:
    """Convert a urllib response and its payload into an abstract response and body.

    Headers whose name is not a valid field name, or whose name or value is
    not a string, are skipped.
    """
    if not isinstance(url_response, _HTTP_RESPONSE_TYPES):
        raise NotHTTPResponseError(url_response)

    header_fields = HTTPFields()
    headers = url_response.headers
    for raw_name, value in (headers.items() if headers is not None else ()):
        if not isinstance(raw_name, str) or not isinstance(value, str):
            continue
        try:
            name = HTTPFieldName(raw_name)
        except ValueError:
            continue
        header_fields.append(name, value)

    body = None if method in _BODILESS_RESPONSE_METHODS else HTTPBody(data)
    return HTTPResponse(status=url_response.getcode(), header_fields=header_fields), body
