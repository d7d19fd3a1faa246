import logging
import threading
import urllib.error
import urllib.request
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, Tuple

from .body import HTTPBody
from .models import HTTPRequest, HTTPResponse

logger = logging.getLogger(__name__)

CompletionHandler = Callable[[Optional[bytes], Optional[Any], Optional[BaseException]], None]


# Transport Interface
class ClientTransport:
    """Interface a generated client uses to send its HTTP operations."""

    async def send(self, request: HTTPRequest, body: Optional[HTTPBody], base_url: str,
                   operation_id: str) -> Tuple[HTTPResponse, Optional[HTTPBody]]:
        """Send ``request`` relative to ``base_url`` and return the response and its body."""
        raise NotImplementedError


# Platform Client
class Session:
    """Callback-based HTTP client over a ``urllib.request`` opener.

    Requests run on a thread pool; redirects, TLS, proxies and cookies are
    whatever the opener's handlers provide. Each submitted request reports back
    exactly once through its completion handler, from a worker thread, with
    either ``(data, response, None)`` or ``(None, None, error)``.

    Responses with a non-2xx status are delivered as responses: urllib raises
    them as ``HTTPError``, which carries the status, headers and payload.
    """

    _shared: Optional["Session"] = None
    _shared_lock = threading.Lock()

    def __init__(self, opener: Optional[urllib.request.OpenerDirector] = None,
                 timeout: Optional[float] = 30.0, max_workers: Optional[int] = None):
        self.opener = opener or urllib.request.build_opener()
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="openapi-urllib")
        self._closed = False

    @classmethod
    def shared(cls) -> "Session":
        """Return the process-wide session, creating it on first use."""
        with cls._shared_lock:
            if cls._shared is None:
                cls._shared = cls()
            return cls._shared

    def submit(self, request: urllib.request.Request, completion_handler: CompletionHandler) -> Future:
        """Perform ``request`` in the background and report the outcome to ``completion_handler``."""
        if self._closed:
            raise RuntimeError("Session is closed")

        logger.debug(f"Submitting {request.get_method()} {request.full_url}")
        future = self._executor.submit(self._perform, request)
        future.add_done_callback(lambda f: self._notify(f, completion_handler))
        return future

    def _perform(self, request: urllib.request.Request) -> Tuple[bytes, Any]:
        try:
            response = self.opener.open(request, timeout=self.timeout)
        except urllib.error.HTTPError as error:
            response = error

        try:
            data = response.read()
        finally:
            response.close()
        return data, response

    def _notify(self, future: Future, completion_handler: CompletionHandler) -> None:
        if future.cancelled():
            completion_handler(None, None, RuntimeError("Session closed before the request was performed"))
            return

        error = future.exception()
        if error is not None:
            completion_handler(None, None, error)
        else:
            data, response = future.result()
            completion_handler(data, response, None)

    def close(self):
        """Stop accepting requests and cancel those not yet started."""
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
