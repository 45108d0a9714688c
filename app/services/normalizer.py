"""URL normalisation: turn loose user input into an absolute, schemed URL."""

import re
from urllib.parse import urlsplit, urlunsplit

_SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def canonicalize_url(raw: str) -> str:
    """Return *raw* as a canonical absolute ``http(s)`` URL.

    Whitespace is trimmed and ``https://`` is prepended when no scheme is
    present.  Scheme and host are lowercased, the scheme's default port is
    dropped and an empty path becomes ``/``, so ``"Example.com:443"``
    canonicalises to ``"https://example.com/"``.

    Raises:
        ValueError: if the result is not a parseable absolute URL (no host,
            whitespace in the host, invalid port or IPv6 literal).
    """
    trimmed = raw.strip()
    candidate = trimmed if _SCHEME_PATTERN.match(trimmed) else f"https://{trimmed}"

    parts = urlsplit(candidate)
    hostname = parts.hostname
    port = parts.port
    if not hostname:
        raise ValueError(f"Cannot parse URL '{trimmed}': missing host.")
    if re.search(r"\s", parts.netloc):
        raise ValueError(f"Cannot parse URL '{trimmed}': whitespace in host.")

    scheme = parts.scheme.lower()
    netloc = hostname if ":" not in hostname else f"[{hostname}]"
    if parts.username or parts.password:
        userinfo = parts.username or ""
        if parts.password:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc += f":{port}"

    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))


def normalize_url(raw: str) -> str:
    """Like :func:`canonicalize_url`, but never raises.

    When the input cannot be parsed as an absolute URL the trimmed input is
    returned unchanged; callers must still validate it before use.
    """
    try:
        return canonicalize_url(raw)
    except ValueError:
        return raw.strip()


def strip_trailing_slash(url: str) -> str:
    """Return the key used to treat ``/page`` and ``/page/`` as the same URL."""
    return url[:-1] if url.endswith("/") else url
