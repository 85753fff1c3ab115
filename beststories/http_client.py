"""
Shared HTTP transport with retries, connection pooling and polite headers.
"""
from __future__ import annotations

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from beststories.errors import TransportError

logger = logging.getLogger(__name__)


class HttpClient:
    """
    One long-lived requests.Session reused for every call of a process.

    Call ``close()`` (or use it as a context manager) on shutdown.
    """

    def __init__(
        self,
        timeout: float = 10,
        max_retries: int = 2,
        pool_size: int = 8,
        user_agent: Optional[str] = None,
    ) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        retry = Retry(
            total=max_retries,
            backoff_factor=0.3,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=pool_size, pool_maxsize=pool_size)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update(
            {
                "User-Agent": user_agent or "beststories/1.0",
                "Accept": "application/json",
            }
        )

    def get_text(self, url: str) -> str:
        """
        GET ``url`` and return the body, raising TransportError on failure.

        ``timeout`` bounds each connect and each socket read, not the whole call:
        a server that keeps trickling bytes can hold the call longer.
        """
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("HTTP GET %s failed: %s", url, exc)
            raise TransportError(f"GET {url} failed: {exc}", url=url) from exc

        if not 200 <= resp.status_code < 300:
            logger.warning("HTTP GET %s returned %s", url, resp.status_code)
            raise TransportError(f"GET {url} returned HTTP {resp.status_code}", url=url, status_code=resp.status_code)
        return resp.text

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
