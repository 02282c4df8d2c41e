import pytest
from shared.settings import ConfigurationError, Settings, validate_environment
from structlog.testing import capture_logs


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PROTEAN_ENV", raising=False)
        settings = _settings()

        assert settings.protean_env == "development"
        assert settings.payment_currency == "INR"
        assert settings.courier_adapter == "simulated"
        assert settings.courier_name == "Imperial Express"
        assert settings.is_production is False

    def test_environment_variables_override(self, monkeypatch):
        monkeypatch.setenv("COURIER_API_TOKEN", "from-env")
        monkeypatch.setenv("PROTEAN_ENV", "production")

        settings = _settings()

        assert settings.courier_api_token == "from-env"
        assert settings.is_production is True

    def test_currency_must_be_a_three_letter_code(self):
        with pytest.raises(ValueError):
            _settings(payment_currency="RUPEE")


class TestValidateEnvironment:
    def test_development_needs_nothing(self):
        validate_environment(_settings(protean_env="development"))

    def test_production_requires_gateway_keys(self):
        with pytest.raises(ConfigurationError, match="RAZORPAY_KEY_SECRET"):
            validate_environment(_settings(protean_env="production", razorpay_key_id="rzp_live_key"))

    def test_production_with_keys(self):
        settings = _settings(
            protean_env="production",
            razorpay_key_id="rzp_live_key",
            razorpay_key_secret="secret",
            courier_api_token="token",
        )
        with capture_logs() as logs:
            validate_environment(settings)
        assert logs == []

    def test_warns_on_test_keys_in_production(self):
        settings = _settings(
            protean_env="production",
            razorpay_key_id="rzp_test_key",
            razorpay_key_secret="secret",
            courier_api_token="token",
        )
        with capture_logs() as logs:
            validate_environment(settings)
        assert [log["event"] for log in logs] == ["test_payment_keys_in_production"]

    def test_warns_without_courier_token(self):
        settings = _settings(protean_env="production", razorpay_key_id="rzp_live_key", razorpay_key_secret="secret")
        with capture_logs() as logs:
            validate_environment(settings)
        assert logs[0]["event"] == "courier_api_token_not_set"
        assert logs[0]["log_level"] == "warning"
