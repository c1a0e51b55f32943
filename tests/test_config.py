"""SurfConfig tests"""

import pytest

from trainsurf.models.config import SurfConfig
from trainsurf.models.errors import ConfigError


class TestSurfConfig:
    def test_defaults(self):
        cfg = SurfConfig()
        assert cfg.soft_call_cap == 18
        assert cfg.hard_call_cap == 20
        assert cfg.min_segment_span == 2
        assert cfg.urgent_rate_limit == 10
        assert cfg.normal_rate_limit == 15
        assert cfg.rate_limit_window == 60.0

    def test_missing_api_key(self):
        with pytest.raises(ConfigError, match="RAPIDAPI_KEY"):
            SurfConfig().require_api_key()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("RAPIDAPI_KEY", "abc")
        monkeypatch.setenv("TRAINSURF_API_TOKENS", " one, two ,,")
        monkeypatch.setenv("TRAINSURF_PORT", "9090")
        monkeypatch.setenv("TRAINSURF_URGENT_RATE_LIMIT", "3")

        cfg = SurfConfig.from_env()

        assert cfg.require_api_key() == "abc"
        assert cfg.api_tokens == frozenset({"one", "two"})
        assert cfg.port == 9090
        assert cfg.urgent_rate_limit == 3

    def test_from_env_bad_number(self, monkeypatch):
        monkeypatch.setenv("TRAINSURF_PORT", "eighty")
        with pytest.raises(ConfigError):
            SurfConfig.from_env()
