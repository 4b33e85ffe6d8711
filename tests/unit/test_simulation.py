"""Unit tests for the failure-injection configuration."""

import random

from todo_api.core.models import ValidationStrictness
from todo_api.core.simulation import SimulationConfig, SimulationService


class TestSimulationConfig:
    def test_defaults(self):
        assert SimulationConfig().to_dict() == {
            "authFailureRate": 0.0,
            "networkDelayMs": 0,
            "networkFailureRate": 0.0,
            "validationStrictness": "normal",
        }


class TestSimulationService:
    def test_rates_are_clamped(self):
        service = SimulationService()

        config = service.update(auth_failure_rate=5, network_failure_rate=-1)

        assert config.auth_failure_rate == 1.0
        assert config.network_failure_rate == 0.0

    def test_negative_delay_becomes_zero(self):
        service = SimulationService()

        assert service.update(network_delay_ms=-10).network_delay_ms == 0

    def test_unknown_strictness_is_ignored(self):
        service = SimulationService()
        service.update(validation_strictness="strict")

        config = service.update(validation_strictness="bogus")

        assert config.validation_strictness is ValidationStrictness.STRICT

    def test_partial_update_keeps_other_fields(self):
        service = SimulationService()
        service.update(network_delay_ms=250)

        config = service.update(auth_failure_rate=0.5)

        assert config.network_delay_ms == 250
        assert config.auth_failure_rate == 0.5

    def test_reset_restores_defaults(self):
        service = SimulationService()
        service.update(auth_failure_rate=1, network_delay_ms=100)

        assert service.reset() == SimulationConfig()

    def test_failure_decisions_follow_rates(self):
        service = SimulationService(rng=random.Random(7))

        assert not any(service.should_fail_auth() for _ in range(50))

        service.update(auth_failure_rate=1, network_failure_rate=1)
        assert all(service.should_fail_auth() for _ in range(50))
        assert all(service.should_fail_network() for _ in range(50))

    def test_retry_after_range(self):
        service = SimulationService(rng=random.Random(7))

        assert all(1 <= service.retry_after() <= 5 for _ in range(50))
