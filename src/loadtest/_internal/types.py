"""Shared type aliases for loadtest."""

from __future__ import annotations

from collections.abc import Mapping

# HTTP headers mapping (read-only once built).
Headers = Mapping[str, str]

# Status code -> number of completed responses with that code.
Result = dict[int, int]
