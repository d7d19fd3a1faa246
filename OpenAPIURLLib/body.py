from enum import Enum
from typing import AsyncIterable, AsyncIterator, Iterable, Optional, Union

from .exceptions import BodyAlreadyIteratedError, TooManyBytesError

BodySource = Union[bytes, bytearray, memoryview, str, Iterable[bytes], AsyncIterable[bytes]]


class IterationBehavior(Enum):
    """Whether a body can be iterated more than once."""
    SINGLE = "single"
    MULTIPLE = "multiple"


class HTTPBody:
    """An HTTP request or response body, consumed as an async stream of bytes.

    In-memory sources (``bytes``, ``str``) have a known length and can be
    iterated repeatedly. Iterators and async iterators have an unknown length
    unless one is given, and can only be iterated once.
    """

    def __init__(self, source: BodySource = b"", *, length: Optional[int] = None,
                 iteration_behavior: Optional[IterationBehavior] = None):
        if isinstance(source, str):
            source = source.encode('utf-8')
        if isinstance(source, (bytes, bytearray, memoryview)):
            self._data: Optional[bytes] = bytes(source)
            self._source = None
            self.length = len(self._data)
            self.iteration_behavior = iteration_behavior or IterationBehavior.MULTIPLE
        elif hasattr(source, '__aiter__') or hasattr(source, '__iter__'):
            self._data = None
            self._source = source
            self.length = length
            self.iteration_behavior = iteration_behavior or IterationBehavior.SINGLE
        else:
            raise TypeError(f"Unsupported body source: {type(source)!r}")
        self._iterated = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self.iteration_behavior is IterationBehavior.SINGLE:
            if self._iterated:
                raise BodyAlreadyIteratedError()
            self._iterated = True
        return self._chunks()

    async def _chunks(self) -> AsyncIterator[bytes]:
        if self._data is not None:
            if self._data:
                yield self._data
            return
        if hasattr(self._source, '__aiter__'):
            async for chunk in self._source:
                yield bytes(chunk)
        else:
            for chunk in self._source:
                yield bytes(chunk)

    async def collect(self, up_to: int) -> bytes:
        """Drain the body into memory, failing if it exceeds ``up_to`` bytes."""
        if self.length is not None and self.length > up_to:
            raise TooManyBytesError(up_to)
        buffer = bytearray()
        async for chunk in self:
            buffer += chunk
            if len(buffer) > up_to:
                raise TooManyBytesError(up_to)
        return bytes(buffer)

    def __repr__(self) -> str:
        length = "unknown" if self.length is None else self.length
        return f"HTTPBody(length={length}, iteration_behavior={self.iteration_behavior.value})"
