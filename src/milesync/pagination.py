"""Follow ``Link: rel="next"`` headers until a collection is exhausted.

Each page's body is returned undecoded; the caller decides what a page
means. Responses are closed as soon as their body has been read so a long
chain of pages never holds more than one connection.
"""

from __future__ import annotations

from typing import Any

import requests

from .errors import CollectionError, NetworkError
from .logging import get_logger

DEFAULT_AUTH_HEADER = "PRIVATE-TOKEN"
DEFAULT_TIMEOUT = 30.0


def _next_url(response: Any) -> str | None:
    links = getattr(response, "links", None) or {}
    nxt = links.get("next")
    if not nxt:
        return None
    url = nxt.get("url")
    return url or None


def fetch_all(
    session: requests.Session,
    url: str,
    *,
    token: str,
    method: str = "GET",
    auth_header: str = DEFAULT_AUTH_HEADER,
    timeout: float | None = DEFAULT_TIMEOUT,
) -> list[bytes]:
    """Fetch every page starting at ``url`` and return the raw bodies.

    Bodies are collected whatever the status code. A ``next`` link that
    points back to an already fetched URL raises :class:`CollectionError`;
    transport failures raise :class:`NetworkError`.
    """
    logger = get_logger()
    pages: list[bytes] = []
    visited: set[str] = set()
    target: str | None = url
    while target is not None:
        visited.add(target)
        try:
            response = session.request(
                method,
                target,
                headers={auth_header: token},
                timeout=timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"{method} {target} failed: {exc}") from exc
        with response:
            try:
                body = response.content
            except requests.RequestException as exc:
                raise NetworkError(f"reading {target} failed: {exc}") from exc
            nxt = _next_url(response)
        pages.append(body)
        logger.debug(
            "fetched page",
            url=target,
            status=getattr(response, "status_code", None),
            page=len(pages),
        )
        if nxt is not None and nxt in visited:
            raise CollectionError(f"pagination cycle: next link {nxt} was already fetched")
        target = nxt
    return pages


__all__ = ["DEFAULT_AUTH_HEADER", "DEFAULT_TIMEOUT", "fetch_all"]
