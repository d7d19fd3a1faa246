import re
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

# RFC 9110 token characters
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_UNSAFE_VALUE_CHARS = re.compile(r"[\r\n\x00]")


class Method(Enum):
    """HTTP request method tokens.

    The set is closed; constructing a method from any other token raises
    ValueError.
    """
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    CONNECT = "CONNECT"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    PATCH = "PATCH"

    def __str__(self) -> str:
        return self.value


class HTTPFieldName:
    """A case-insensitive header field name.

    Raises ValueError if ``name`` is not a valid token.
    """

    __slots__ = ("raw_name", "canonical_name")

    def __init__(self, name: str):
        if not isinstance(name, str) or not _TOKEN_RE.match(name):
            raise ValueError(f"Invalid header field name: {name!r}")
        self.raw_name = name
        self.canonical_name = name.lower()

    def __eq__(self, other) -> bool:
        if isinstance(other, HTTPFieldName):
            return self.canonical_name == other.canonical_name
        if isinstance(other, str):
            return self.canonical_name == other.lower()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.canonical_name)

    def __str__(self) -> str:
        return self.raw_name

    def __repr__(self) -> str:
        return f"HTTPFieldName({self.raw_name!r})"


FieldNameLike = Union[HTTPFieldName, str]


def _field_name(name: FieldNameLike) -> HTTPFieldName:
    return name if isinstance(name, HTTPFieldName) else HTTPFieldName(name)


@dataclass(frozen=True)
class HTTPField:
    """A single header field."""
    name: HTTPFieldName
    value: str

    def __post_init__(self):
        object.__setattr__(self, "name", _field_name(self.name))
        if not isinstance(self.value, str):
            raise TypeError(f"Header field value must be a string, got {type(self.value)!r}")
        object.__setattr__(self, "value", _UNSAFE_VALUE_CHARS.sub(" ", self.value).strip(" \t"))


class HTTPFields:
    """Ordered collection of header fields with case-insensitive names.

    Repeated names are kept as separate fields. ``get`` joins them the way a
    single combined header line would read.
    """

    def __init__(self, fields: Optional[Union["HTTPFields", Dict[str, str], Iterable]] = None):
        self._fields: List[HTTPField] = []
        if fields is None:
            return
        if isinstance(fields, dict):
            fields = fields.items()
        for item in fields:
            if isinstance(item, HTTPField):
                self._fields.append(item)
            else:
                name, value = item
                self.append(name, value)

    def append(self, name: FieldNameLike, value: str) -> None:
        self._fields.append(HTTPField(_field_name(name), value))

    def get_all(self, name: FieldNameLike) -> List[str]:
        key = _field_name(name)
        return [f.value for f in self._fields if f.name == key]

    def get(self, name: FieldNameLike, default: Optional[str] = None) -> Optional[str]:
        key = _field_name(name)
        values = self.get_all(key)
        if not values:
            return default
        separator = "; " if key.canonical_name == "cookie" else ", "
        return separator.join(values)

    def __getitem__(self, name: FieldNameLike) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(str(name))
        return value

    def __setitem__(self, name: FieldNameLike, value: str) -> None:
        key = _field_name(name)
        replacement = HTTPField(key, value)
        fields = []
        replaced = False
        for f in self._fields:
            if f.name != key:
                fields.append(f)
            elif not replaced:
                # keep the position of the first occurrence
                fields.append(replacement)
                replaced = True
        if not replaced:
            fields.append(replacement)
        self._fields = fields

    def __delitem__(self, name: FieldNameLike) -> None:
        key = _field_name(name)
        if key not in self:
            raise KeyError(str(name))
        self._fields = [f for f in self._fields if f.name != key]

    def __contains__(self, name) -> bool:
        try:
            key = _field_name(name)
        except ValueError:
            return False
        return any(f.name == key for f in self._fields)

    def __iter__(self) -> Iterator[HTTPField]:
        return iter(list(self._fields))

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other) -> bool:
        if not isinstance(other, HTTPFields):
            return NotImplemented
        return self._fields == other._fields

    def items(self) -> List[Tuple[str, str]]:
        return [(f.name.raw_name, f.value) for f in self._fields]

    def __repr__(self) -> str:
        return f"HTTPFields({self.items()!r})"


# Request/Response Models
@dataclass
class HTTPRequest:
    """Represents an abstract HTTP request.

    ``path`` is relative to the server's base URL and already percent-encoded,
    optionally with a query string.
    """
    method: Method
    path: Optional[str] = "/"
    header_fields: HTTPFields = field(default_factory=HTTPFields)

    def __post_init__(self):
        if not isinstance(self.method, Method):
            self.method = Method(str(self.method).upper())
        if not isinstance(self.header_fields, HTTPFields):
            self.header_fields = HTTPFields(self.header_fields)


@dataclass
class HTTPResponse:
    """Represents an abstract HTTP response."""
    status: int
    header_fields: HTTPFields = field(default_factory=HTTPFields)

    def __post_init__(self):
        if not isinstance(self.header_fields, HTTPFields):
            self.header_fields = HTTPFields(self.header_fields)

    @property
    def reason_phrase(self) -> str:
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return ""

    @property
    def kind(self) -> str:
        if 100 <= self.status < 200:
            return "informational"
        if 200 <= self.status < 300:
            return "successful"
        if 300 <= self.status < 400:
            return "redirection"
        if 400 <= self.status < 500:
            return "client_error"
        if 500 <= self.status < 600:
            return "server_error"
        return "invalid"
