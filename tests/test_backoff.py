"""Tests for the shared reconnection policy."""

import pytest

from vitals_realtime.applib.config import Settings
from vitals_realtime.realtime.backoff import BackoffPolicy


class TestDelayFor:
    """Tests for BackoffPolicy.delay_for."""

    @pytest.mark.parametrize("attempt", [1, 2, 3, 4])
    def test_sse_delay_matches_exponential_formula(self, attempt):
        policy = BackoffPolicy.for_sse(Settings())
        expected_ms = min(1000 * 2 ** attempt, 30000)
        assert policy.delay_for(attempt) * 1000 == expected_ms

    def test_no_delay_once_attempts_exhausted(self):
        policy = BackoffPolicy.for_sse(Settings())
        assert policy.delay_for(5) is None
        assert policy.delay_for(6) is None

    def test_delay_capped_at_max(self):
        policy = BackoffPolicy(initial_delay=1.0, max_delay=30.0, max_attempts=10)
        assert policy.delay_for(5) == 30.0
        assert policy.delay_for(9) == 30.0

    def test_zero_attempts_never_retries(self):
        policy = BackoffPolicy(max_attempts=0)
        assert policy.delay_for(0) is None


class TestFactories:
    """Policies built from settings."""

    def test_websocket_defaults(self):
        policy = BackoffPolicy.for_websocket(Settings())
        assert policy.initial_delay == 1.0
        assert policy.max_delay == 5.0
        assert policy.max_attempts == 5

    def test_sse_defaults(self):
        policy = BackoffPolicy.for_sse(Settings())
        assert policy.initial_delay == 1.0
        assert policy.max_delay == 30.0
        assert policy.max_attempts == 5

    def test_settings_override(self):
        settings = Settings(SSE_RECONNECT_ATTEMPTS=2, SSE_RECONNECT_DELAY_MAX=3.0)
        policy = BackoffPolicy.for_sse(settings)
        assert policy.delay_for(1) == 2.0
        assert policy.delay_for(2) is None

    def test_invalid_bounds_rejected(self):
        with pytest.raises(ValueError):
            BackoffPolicy(initial_delay=10.0, max_delay=5.0)
