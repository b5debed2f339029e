"""Async HTTP transport that replays one request template."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiohttp

from loadtest._internal.errors import TransportError

if TYPE_CHECKING:
    from loadtest.transport.request import RequestTemplate


class HttpClient:
    """Replays a :class:`RequestTemplate` through an ``aiohttp.ClientSession``.

    One instance belongs to one worker and its event loop. The template
    and timeout are shared with the other workers; the session and its
    connection pool are not.

    Attributes:
        template: The request sent by :meth:`send`.
        timeout: Total per-request timeout in seconds, or None for no limit.
    """

    def __init__(self, template: RequestTemplate, timeout: float | None = None) -> None:
        """Initialize the client.

        Args:
            template: Request to replay.
            timeout: Per-request timeout in seconds. ``None`` or ``0``
                disables the timeout.
        """
        self.template = template
        self.timeout = timeout or None
        self._timeout = aiohttp.ClientTimeout(total=self.timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpClient:
        """Open the underlying aiohttp session."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def send(self) -> int:
        """Send the template once and return the response status code.

        The response body is read and released so the connection can go
        back to the pool.

        Returns:
            The HTTP status code.

        Raises:
            TransportError: If the round trip did not complete (timeout,
                connection failure, server hang-up).
            RuntimeError: If the client is used outside of an async
                context manager.
        """
        if self._session is None:
            msg = "HttpClient must be used as an async context manager"
            raise RuntimeError(msg)

        template = self.template
        # Resolver failures surface as OSError, and as UnicodeError for hosts
        # that cannot be IDNA-encoded
        try:
            async with self._session.request(
                template.method,
                template.url,
                headers=dict(template.headers),
            ) as resp:
                await resp.read()
                return resp.status
        except (aiohttp.ClientError, TimeoutError, OSError, ValueError) as exc:
            msg = f"failed to send request: {type(exc).__name__}: {exc}"
            raise TransportError(msg) from exc
