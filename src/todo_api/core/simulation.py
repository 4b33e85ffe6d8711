"""Failure-injection settings for the QA testing harness.

One ``SimulationService`` is owned by the application and handed to the
testing routes as a dependency. Updates swap in a new immutable
``SimulationConfig`` under a lock, so readers always see a consistent
snapshot.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass, replace

import structlog

from todo_api.core.models import ValidationStrictness

logger = structlog.get_logger()

CONFIG_DESCRIPTION = {
    "authFailureRate": "Percentage of auth requests that will fail (0-1)",
    "networkDelayMs": "Artificial delay added to responses (milliseconds)",
    "networkFailureRate": "Percentage of requests that will randomly fail (0-1)",
    "validationStrictness": "Validation level: 'normal', 'strict', 'loose'",
}

RATE_LIMIT_NOTE = "Rate limiting has been disabled for this API"


def _clamp_rate(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class SimulationConfig:
    auth_failure_rate: float = 0.0
    network_delay_ms: int = 0
    network_failure_rate: float = 0.0
    validation_strictness: ValidationStrictness = ValidationStrictness.NORMAL

    def to_dict(self) -> dict:
        return {
            "authFailureRate": self.auth_failure_rate,
            "networkDelayMs": self.network_delay_ms,
            "networkFailureRate": self.network_failure_rate,
            "validationStrictness": self.validation_strictness.value,
        }


class SimulationService:
    """Process-wide failure-injection configuration."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._lock = threading.Lock()
        self._config = SimulationConfig()
        self._rng = rng or random.Random()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    def update(
        self,
        *,
        auth_failure_rate: float | None = None,
        network_delay_ms: int | None = None,
        network_failure_rate: float | None = None,
        validation_strictness: str | None = None,
    ) -> SimulationConfig:
        changes: dict = {}
        if auth_failure_rate is not None:
            changes["auth_failure_rate"] = _clamp_rate(auth_failure_rate)
        if network_delay_ms is not None:
            changes["network_delay_ms"] = max(0, int(network_delay_ms))
        if network_failure_rate is not None:
            changes["network_failure_rate"] = _clamp_rate(network_failure_rate)
        if validation_strictness is not None:
            try:
                changes["validation_strictness"] = ValidationStrictness(validation_strictness)
            except ValueError:
                logger.info("simulation_strictness_ignored", value=validation_strictness)

        with self._lock:
            self._config = replace(self._config, **changes)
            config = self._config

        logger.info("simulation_config_updated", **config.to_dict())
        return config

    def reset(self) -> SimulationConfig:
        with self._lock:
            self._config = SimulationConfig()
            return self._config

    def should_fail_auth(self) -> bool:
        return self._rng.random() < self._config.auth_failure_rate

    def should_fail_network(self) -> bool:
        return self._rng.random() < self._config.network_failure_rate

    def retry_after(self) -> int:
        return self._rng.randint(1, 5)

    def random(self) -> float:
        return self._rng.random()
