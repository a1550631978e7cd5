from __future__ import annotations

from dataclasses import dataclass
from threading import Lock


@dataclass
class ProviderMetrics:
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    latency_total_ms: float = 0.0

    def avg_latency_ms(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.latency_total_ms / self.total_requests


class MetricsCollector:
    def __init__(self):
        self._per_provider: dict[str, ProviderMetrics] = {}
        self._quotes_served = 0
        self._quotes_failed = 0
        self._fallback_triggers = 0
        self._lock = Lock()

    def _get(self, provider: str) -> ProviderMetrics:
        if provider not in self._per_provider:
            self._per_provider[provider] = ProviderMetrics()
        return self._per_provider[provider]

    def record_request(self, provider: str, success: bool, latency_ms: float):
        with self._lock:
            m = self._get(provider)
            m.total_requests += 1
            m.latency_total_ms += max(latency_ms, 0.0)
            if success:
                m.successful_requests += 1
            else:
                m.failed_requests += 1

    def record_quote(self, success: bool, fallback_triggered: bool = False):
        with self._lock:
            if success:
                self._quotes_served += 1
            else:
                self._quotes_failed += 1
            if fallback_triggered:
                self._fallback_triggers += 1

    def provider_status(self) -> dict[str, dict[str, float | int]]:
        with self._lock:
            out: dict[str, dict[str, float | int]] = {}
            for name, m in self._per_provider.items():
                failure_rate = 0.0 if m.total_requests == 0 else (m.failed_requests / m.total_requests)
                out[name] = {
                    "total_requests": m.total_requests,
                    "successful_requests": m.successful_requests,
                    "failed_requests": m.failed_requests,
                    "failure_rate": round(failure_rate, 4),
                    "average_latency_ms": round(m.avg_latency_ms(), 3),
                }
            return out

    def global_metrics(self) -> dict[str, float | int | dict]:
        per = self.provider_status()
        with self._lock:
            served, failed, triggers = self._quotes_served, self._quotes_failed, self._fallback_triggers
        total = served + failed
        return {
            "quote_count": total,
            "quote_failures": failed,
            "fallback_trigger_rate": 0.0 if total == 0 else round(triggers / total, 4),
            "per_provider": per,
        }
