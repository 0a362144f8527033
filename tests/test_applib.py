"""Tests for configuration, helpers and models."""

import pytest

from vitals_realtime.applib.config import Settings
from vitals_realtime.applib.helpers import build_cookie_header, redact_string, socket_base_url, sse_url
from vitals_realtime.applib.models.connection import ConnectOptions
from vitals_realtime.applib.models.vitals import VitalReading


class TestUrls:
    """Tests for URL builders."""

    @pytest.mark.parametrize(
        "api_base, expected",
        [
            ("http://13.233.6.224:3007/api", "http://13.233.6.224:3007"),
            ("http://13.233.6.224:3007/api/", "http://13.233.6.224:3007"),
            ("https://vitals.example.com", "https://vitals.example.com"),
            ("https://vitals.example.com/", "https://vitals.example.com"),
        ],
    )
    def test_socket_base_url(self, api_base, expected):
        assert socket_base_url(api_base) == expected

    def test_sse_urls(self):
        base = "http://host:3007/api/"
        assert sse_url(base, 7, 42) == "http://host:3007/api/vitals/sse/7/42"
        assert sse_url(base, 7) == "http://host:3007/api/vitals/sse/practice/7"

    def test_cookie_header(self):
        assert build_cookie_header("evitals_session", "abc") == "evitals_session=abc"
        assert build_cookie_header("evitals_session", None) is None
        assert build_cookie_header("evitals_session", "") is None

    def test_redact_string(self):
        assert redact_string("abcdef") == "a****"
        assert redact_string("abcdef", "start") == "****f"
        assert redact_string("abcdef", "all") == "*****"
        assert redact_string(None) is None


class TestSettings:
    """Tests for Settings defaults and environment overrides."""

    def test_defaults(self):
        settings = Settings()
        assert settings.SESSION_COOKIE_NAME == "evitals_session"
        assert settings.SOCKET_CONNECT_TIMEOUT == 20.0
        assert settings.SSE_RECONNECT_DELAY_MAX == 30.0

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("API_BASE_URL", "http://env-host/api")
        monkeypatch.setenv("SOCKET_RECONNECT_ATTEMPTS", "9")
        settings = Settings()
        assert settings.API_BASE_URL == "http://env-host/api"
        assert settings.SOCKET_RECONNECT_ATTEMPTS == 9

    def test_logging_config_level(self):
        settings = Settings(LOG_LEVEL="debug")
        assert settings.logging_config["root"]["level"] == "DEBUG"


class TestModels:
    """Tests for request and payload models."""

    def test_connect_options_blank_ids_are_missing(self):
        options = ConnectOptions(practice_id="", patient_id="")
        assert options.practice_id is None
        assert options.patient_id is None

    def test_vital_reading_summary(self):
        reading = VitalReading.from_payload({"SYS": 120, "DIA": 80, "PUL": 64, "patientId": 42, "device": "bp-1"})
        assert reading.patient_id == 42
        assert reading.summary() == "BP 120/80, pulse 64"
        assert reading.model_extra == {"device": "bp-1"}

    def test_vital_reading_ignores_non_objects(self):
        assert VitalReading.from_payload([1, 2]) is None
        assert VitalReading.from_payload(None) is None
