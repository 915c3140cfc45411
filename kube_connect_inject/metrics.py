"""Request counters for the listener, exposed through ``prometheus_client``."""

from typing import Any

from prometheus_client import CollectorRegistry, Counter, generate_latest

PREFIX = "connect_inject"

REQUESTS = "requests"
INJECTIONS = "injections"
SKIPS = "skips"
REJECTIONS = "rejections"
ERRORS = "errors"

_DESCRIPTIONS = {
    REQUESTS: "Total number of admission calls received",
    INJECTIONS: "Admission calls answered with a sidecar patch",
    SKIPS: "Admission calls allowed without changes",
    REJECTIONS: "Admission calls answered with allowed=false",
    ERRORS: "Admission calls answered with HTTP 400",
}


class Metrics:
    """
    Counters shared by all listener threads.

    Every instance owns its registry, so several listeners in one process (as
    in the tests) never collide on metric names.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self._counters = {
            name: Counter(f"{PREFIX}_{name}", description, registry=self.registry)
            for name, description in _DESCRIPTIONS.items()
        }

    def increment(self, name: str, amount: int = 1) -> None:
        self._counters[name].inc(amount)

    def get(self, name: str) -> float:
        value = self.registry.get_sample_value(f"{PREFIX}_{name}_total")
        return value or 0.0

    def record(self, status: int, body: dict[str, Any]) -> None:
        """Count one handled call from its HTTP status and response document."""
        self.increment(REQUESTS)
        if status != 200:
            self.increment(ERRORS)
            return

        response = body.get("response", {})
        if not response.get("allowed"):
            self.increment(REJECTIONS)
        elif response.get("patch"):
            self.increment(INJECTIONS)
        else:
            self.increment(SKIPS)

    def metrics_text(self) -> bytes:
        return generate_latest(self.registry)
