"""Pre-built request descriptor shared by every worker."""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType

from yarl import URL

from loadtest._internal.errors import ConfigurationError
from loadtest._internal.types import Headers

# RFC 9110 section 5.6.2 token
_METHOD_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_SUPPORTED_SCHEMES = frozenset({"http", "https"})


@dataclass(frozen=True)
class RequestTemplate:
    """Immutable description of the request every worker sends.

    Built once by :func:`build_request_template` and then read from many
    threads without locking, so nothing in it may change after
    construction.

    Attributes:
        method: HTTP method token (e.g. ``GET``).
        url: Absolute http(s) target URL.
        headers: Read-only headers mapping; always contains ``User-Agent``.
    """

    method: str
    url: str
    headers: Headers

    @property
    def user_agent(self) -> str:
        return self.headers["User-Agent"]


def _parse_target(url: str) -> URL:
    parsed = URL(url)
    if not parsed.is_absolute() or parsed.scheme not in _SUPPORTED_SCHEMES:
        msg = "not an absolute http(s) URL"
        raise ValueError(msg)

    host = parsed.host
    raw_host = parsed.raw_host or ""
    if not host or any(ch.isspace() for ch in raw_host):
        msg = f"invalid host {raw_host!r}"
        raise ValueError(msg)

    # Name resolution IDNA-encodes the host; empty or oversized labels fail there
    raw_host.encode("idna")
    return parsed


def build_request_template(url: str, method: str, user_agent: str) -> RequestTemplate:
    """Validate the inputs and build a :class:`RequestTemplate`.

    Args:
        url: Absolute target URL with an http or https scheme.
        method: HTTP method token. It is used as given; callers uppercase it.
        user_agent: Value for the ``User-Agent`` header.

    Returns:
        The shared request template.

    Raises:
        ConfigurationError: If the method is not a valid token, the URL
            cannot form a request, or the user agent contains line breaks.
    """
    if not _METHOD_TOKEN.fullmatch(method):
        msg = f"failed to create request: invalid method {method!r}"
        raise ConfigurationError(msg)

    try:
        _parse_target(url)
    except (TypeError, ValueError) as exc:
        msg = f"failed to create request: invalid URL {url!r}: {exc}"
        raise ConfigurationError(msg) from exc

    if "\r" in user_agent or "\n" in user_agent:
        msg = "failed to create request: user agent must not contain line breaks"
        raise ConfigurationError(msg)

    return RequestTemplate(
        method=method,
        url=url,
        headers=MappingProxyType({"User-Agent": user_agent}),
    )
