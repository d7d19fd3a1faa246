import re
import string
from urllib.parse import SplitResult, urlsplit, urlunsplit

# Characters allowed in an already percent-encoded URL (RFC 3986)
_URL_CHARACTERS = frozenset(string.ascii_letters + string.digits + "-._~:/?#[]@!$&'()*+,;=%")
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
# Brackets are only legal around an IP-literal host
_BRACKETS = frozenset("[]")


def parse_url_components(value: str) -> SplitResult:
    """Split a percent-encoded URL or URL reference into its components.

    Raises ValueError if ``value`` contains characters that must be escaped,
    a malformed percent-escape, or an unparsable authority.
    """
    if not isinstance(value, str):
        raise ValueError(f"URL must be a string, got {type(value)!r}")

    for i, char in enumerate(value):
        if char not in _URL_CHARACTERS:
            raise ValueError(f"Character {char!r} at index {i} is not allowed in a URL")

    if _MALFORMED_ESCAPE.search(value):
        raise ValueError(f"Malformed percent-escape in {value!r}")

    components = urlsplit(value)
    components.port  # raises ValueError on a malformed port
    if _BRACKETS.intersection(components.path + components.query + components.fragment):
        raise ValueError(f"Brackets are only allowed around an IP-literal host in {value!r}")
    return components


def has_query(value: str) -> bool:
    """Whether a URL reference has a query component, even an empty one."""
    return '?' in value.partition('#')[0]


def compose_url(base: SplitResult, relative: SplitResult, keep_empty_query: bool = False) -> str:
    """Append the relative path to the base path and take the relative query.

    Both paths are concatenated as-is; nothing is re-encoded. An empty query
    is kept as a bare ``?`` when ``keep_empty_query`` is set.
    """
    path = base.path + relative.path
    if base.netloc and path and not path.startswith('/'):
        raise ValueError(f"Path {path!r} must start with '/' when an authority is present")
    if relative.query or not keep_empty_query:
        return urlunsplit((base.scheme, base.netloc, path, relative.query, base.fragment))

    url = urlunsplit((base.scheme, base.netloc, path, "", "")) + "?"
    if base.fragment:
        url += "#" + base.fragment
    return url
