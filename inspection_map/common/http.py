"""HTTP client with explicit timeouts and opt-in retries."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from inspection_map.common.constants import USER_AGENT
from inspection_map.common.errors import NetworkError, ParseError

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 60.0


@dataclass(frozen=True)
class RetryConfig:
    # A single attempt means failures surface immediately.
    max_attempts: int = 1
    multiplier: float = 1.0
    max_wait: float = 30.0


class RetryableNetworkError(NetworkError):
    pass


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status_or_retry(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableNetworkError(f"Retryable HTTP status {status} from {url}")
        if status >= 400:
            raise NetworkError(f"HTTP status {status} from {url}")

    def _get_json(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        req_timeout = timeout or self.timeout
        try:
            response = self.session.request(
                method="GET",
                url=url,
                headers=self._headers(headers),
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except requests.Timeout as exc:
            raise RetryableNetworkError(f"Timed out requesting {url}") from exc
        except requests.RequestException as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        self._raise_for_status_or_retry(response, url)

        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"Invalid JSON payload from {url}") from exc

    def get_json(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableNetworkError),
            reraise=True,
        )
        def _wrapped() -> Any:
            return self._get_json(url, headers=headers, timeout=timeout)

        return _wrapped()
