"""Minimal HTTP JSON helpers for the BrailleBridge client."""

from __future__ import annotations

import json
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import TransportError


def join_url(base: str, path: str) -> str:
    """Join a base URL and an endpoint path with exactly one slash."""
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def post_json(url: str, payload: dict[str, Any], timeout_sec: float = 5.0) -> dict[str, Any]:
    """POST a JSON payload and decode the JSON response, if any."""
    body = json.dumps(payload).encode("utf-8")
    request = Request(url=url, data=body, method="POST")
    request.add_header("Content-Type", "application/json")

    try:
        with urlopen(request, timeout=timeout_sec) as response:
            raw = response.read().decode("utf-8")
    except HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace")
        raise TransportError(f"HTTP {exc.code} from {url}: {detail}", url=url, status=exc.code) from exc
    except URLError as exc:
        raise TransportError(f"Network error calling {url}: {exc.reason}", url=url) from exc
    except TimeoutError as exc:
        raise TransportError(f"Timed out calling {url}", url=url) from exc

    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        return {"raw": raw}
    return decoded if isinstance(decoded, dict) else {"data": decoded}
