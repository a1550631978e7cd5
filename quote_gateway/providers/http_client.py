from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, TypeVar
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from quote_gateway.config.settings import settings
from quote_gateway.exceptions import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonHttpClient:
    """Blocking JSON GET with exponential-backoff retries."""

    provider_name = "http"
    base_url = ""
    extra_headers: dict[str, str] = {}

    def _retry(self, fn: Callable[[], T]) -> T:
        delay = settings.retry_backoff_base_seconds
        last_error: Exception | None = None
        for attempt in range(settings.retry_attempts):
            try:
                return fn()
            except HTTPError as exc:
                last_error = exc
                # client errors will not improve on retry
                if 400 <= exc.code < 500 and exc.code != 429:
                    break
            except (URLError, TimeoutError, OSError, ValueError) as exc:
                last_error = exc
            if attempt < settings.retry_attempts - 1:
                logger.debug(f"{self.provider_name} request failed, retrying in {delay:.2f}s: {last_error}")
                time.sleep(delay)
                delay *= 2
        raise ProviderError(f"{self.provider_name} request failed: {last_error}", provider=self.provider_name, cause=last_error)

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if params:
            url = f"{url}?{urlencode(params)}"
        headers = {"User-Agent": settings.user_agent, **self.extra_headers}

        def _run():
            request = Request(url, headers=headers)
            with urlopen(request, timeout=settings.request_timeout_seconds) as response:
                return json.loads(response.read().decode("utf-8"))

        return self._retry(_run)

    @staticmethod
    def _path_symbol(symbol: str) -> str:
        return quote(symbol, safe="")
