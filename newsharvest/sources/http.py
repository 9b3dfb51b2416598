from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from ..config import HTTP_TIMEOUT_S, USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


@dataclass
class HttpResult:
    url: str
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400


def http_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout_s: Optional[float] = None,
) -> HttpResult:
    """
    GET with redirects followed. The body is returned for any status code;
    callers decide what a non-2xx means. Network errors propagate.
    """
    merged = dict(DEFAULT_HEADERS)
    merged.update(headers or {})
    timeout = timeout_s if timeout_s is not None else HTTP_TIMEOUT_S

    logger.debug("[http] GET url=%s timeout_s=%s", url, timeout)
    r = requests.get(url, headers=merged, timeout=timeout, allow_redirects=True)
    return HttpResult(url=r.url, status_code=r.status_code, text=r.text)
