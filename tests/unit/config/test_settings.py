"""Tests for configuration loading."""

import dataclasses

import pytest

from btk_lookup.config.settings import LookupConfig, load_app_config
from btk_lookup.errors import ConfigurationError


class TestLookupConfig:
    """Tests for the LookupConfig defaults and derived URLs."""

    def test_defaults(self):
        config = LookupConfig()

        assert config.gemini_model == "gemini-2.5-flash"
        assert config.max_retries == 3
        assert config.retry_delay == 1.0
        assert config.inter_query_delay == 0.5
        assert config.max_redirects == 5

    def test_derived_urls(self):
        config = LookupConfig()

        assert config.root_url == "https://internet.btk.gov.tr/sitesorgu/"
        assert config.captcha_url == "https://internet.btk.gov.tr/sitesorgu/secureimage/captcha.php"
        assert config.site_origin == "https://internet.btk.gov.tr"

    def test_frozen(self):
        config = LookupConfig()

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.max_retries = 10

    def test_require_api_key(self):
        assert LookupConfig(gemini_api_key="abc").require_api_key() == "abc"

        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            LookupConfig().require_api_key()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_retries": 0},
            {"max_redirects": -1},
            {"request_timeout": 0},
            {"retry_delay": -1},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            LookupConfig(**kwargs)


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("GEMINI_API_KEY=file-key\nBTK_MAX_RETRIES=5\n", encoding="utf-8")

        config = load_app_config(env_file, environ={})

        assert config.gemini_api_key == "file-key"
        assert config.max_retries == 5

    def test_environment_wins_over_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("GEMINI_API_KEY=file-key\nGEMINI_MODEL=gemini-2.0-flash\n", encoding="utf-8")

        config = load_app_config(env_file, environ={"GEMINI_API_KEY": "env-key"})

        assert config.gemini_api_key == "env-key"
        assert config.gemini_model == "gemini-2.0-flash"

    def test_missing_file_is_ignored(self, tmp_path):
        config = load_app_config(tmp_path / "missing.env", environ={})

        assert config == LookupConfig()

    def test_numeric_values(self):
        config = load_app_config(
            None,
            environ={
                "BTK_RETRY_DELAY": "2.5",
                "BTK_QUERY_DELAY": "0",
                "BTK_REQUEST_TIMEOUT": "10",
                "LOG_LEVEL": "DEBUG",
            },
        )

        assert config.retry_delay == 2.5
        assert config.inter_query_delay == 0.0
        assert config.request_timeout == 10.0
        assert config.log_level == "DEBUG"

    def test_base_url_trailing_slash(self):
        config = load_app_config(None, environ={"BTK_BASE_URL": "http://localhost:8080/sitesorgu/"})

        assert config.root_url == "http://localhost:8080/sitesorgu/"
        assert config.site_origin == "http://localhost:8080"

    def test_invalid_integer(self):
        with pytest.raises(ConfigurationError, match="BTK_MAX_RETRIES"):
            load_app_config(None, environ={"BTK_MAX_RETRIES": "three"})

    def test_invalid_number(self):
        with pytest.raises(ConfigurationError, match="BTK_RETRY_DELAY"):
            load_app_config(None, environ={"BTK_RETRY_DELAY": "soon"})

    def test_empty_values_are_ignored(self):
        config = load_app_config(None, environ={"GEMINI_API_KEY": "", "BTK_MAX_RETRIES": ""})

        assert config.gemini_api_key is None
        assert config.max_retries == 3
