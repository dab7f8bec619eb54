"""
설정 테스트
"""

import logging

from ..config import Settings, configure_logging, settings


class TestSettings:

    def test_default_params_keys(self):
        params = settings.default_params()
        assert set(params) == {"rebalance_bps", "fee_recipient", "manager_fee_bps", "slippage_bps", "slippage_interval"}
        assert params["rebalance_bps"] == Settings.REBALANCE_BPS

    def test_empty_fee_recipient_is_none(self, monkeypatch):
        monkeypatch.setattr(Settings, "FEE_RECIPIENT", "")
        assert Settings().default_params()["fee_recipient"] is None


class TestConfigureLogging:

    def test_explicit_level(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        configure_logging("debug")

        assert calls[0]["level"] == "DEBUG"
        assert "%(name)s" in calls[0]["format"]

    def test_level_from_settings(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        monkeypatch.setattr(settings, "LOG_LEVEL", "warning")

        configure_logging()

        assert calls[0]["level"] == "WARNING"
