"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from relay.config import DEV_JWT_SECRET, Environment
from tests.helpers import make_settings


class TestSettingsDefaults:
    def test_defaults(self):
        s = make_settings()
        assert s.relay_env == Environment.TEST
        assert s.cookie_name == "authToken"
        assert s.cookie_domain is None
        assert s.cookie_same_site == "lax"
        assert s.jwt_expires_in_s == 7 * 24 * 60 * 60
        assert s.openrouter_base_url == "https://openrouter.ai/api/v1"
        assert s.llm_timeout_s == 30.0
        assert s.llm_max_tokens == 1000
        assert s.llm_temperature == 0.7
        assert s.chat_history_limit == 10

    def test_cors_origin_list_splits_and_trims(self):
        s = make_settings(CLIENT_URL="http://a.test, http://b.test,")
        assert s.cors_origin_list == ["http://a.test", "http://b.test"]

    def test_is_production_only_in_prod(self):
        assert make_settings(RELAY_ENV="prod").is_production is True
        assert make_settings(RELAY_ENV="staging").is_production is False
        assert make_settings().is_production is False


class TestSettingsValidation:
    def test_database_url_required(self):
        with pytest.raises(ValidationError):
            make_settings(DATABASE_URL=None)

    @pytest.mark.parametrize("env", ["staging", "prod"])
    def test_dev_secret_refused_in_deployed_envs(self, env):
        with pytest.raises(ValidationError, match="JWT_SECRET is required"):
            make_settings(RELAY_ENV=env, JWT_SECRET=DEV_JWT_SECRET)

    def test_dev_secret_allowed_locally(self):
        s = make_settings(RELAY_ENV="local", JWT_SECRET=DEV_JWT_SECRET)
        assert s.jwt_secret == DEV_JWT_SECRET

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError, match="at least 32 characters"):
            make_settings(JWT_SECRET="too-short")

    def test_same_site_none_requires_secure(self):
        with pytest.raises(ValidationError, match="COOKIE_SECURE"):
            make_settings(COOKIE_SAME_SITE="none", COOKIE_SECURE=False)

        s = make_settings(COOKIE_SAME_SITE="none", COOKIE_SECURE=True)
        assert s.cookie_same_site == "none"

    def test_unknown_environment_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(RELAY_ENV="development")

    def test_token_lifetime_floor(self):
        with pytest.raises(ValidationError):
            make_settings(JWT_EXPIRES_IN_S=10)
