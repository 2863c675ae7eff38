"""Tests for ClientOptions and the layered config loader."""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from cfclient.config import CONFIG_FILE_ENV_VAR, ClientOptions, load_client_options
from cfclient.core.errors import ConfigurationError
from cfclient.core.resilience import QueueOrder, ResilienceConfig, get_resilience_preset


@pytest.fixture
def isolated_env(tmp_path):
    """Run with an empty environment, a fake home and tmp_path as cwd."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    original_cwd = os.getcwd()
    with patch.object(Path, "home", return_value=home):
        with patch.dict(os.environ, {}, clear=True):
            os.chdir(work)
            try:
                yield home, work
            finally:
                os.chdir(original_cwd)


class TestClientOptions:
    """Dataclass defaults, TOML tables and validation."""

    def test_defaults(self):
        options = ClientOptions(api_token="t")

        assert options.api_base_url == "https://api.cloudflare.com/client/v4/"
        assert options.resilience == ResilienceConfig()
        assert options.validate() == []

    def test_missing_token(self):
        failures = ClientOptions().validate()
        assert failures == ["cloudflare.api_token: an API token is required"]

    def test_named_client_prefix(self):
        options = ClientOptions(
            api_token="t",
            resilience=ResilienceConfig(permit_limit=0),
        )

        failures = options.validate("secondary")

        assert len(failures) == 1
        assert failures[0].startswith("cloudflare.clients.secondary.resilience.permit_limit")

    def test_all_failures_reported(self):
        options = ClientOptions(api_base_url="ftp://x", log_level="LOUD")

        with pytest.raises(ConfigurationError) as exc_info:
            options.raise_if_invalid()

        assert len(exc_info.value.failures) == 3

    def test_from_toml_dict(self):
        data = {
            "api_token": "abc",
            "account_id": 12345,
            "log_level": "debug",
            "resilience": {"preset": "testing", "permit_limit": 4, "total_timeout": "off"},
        }

        options = ClientOptions.from_toml_dict(data)

        assert options.api_token == "abc"
        assert options.account_id == "12345"
        assert options.log_level == "DEBUG"
        assert options.resilience.permit_limit == 4
        assert options.resilience.total_timeout is None
        assert options.resilience.base_delay == get_resilience_preset("testing").base_delay

    def test_invalid_resilience_values(self):
        data = {"resilience": {"max_retries": "lots", "queue_order": "random", "preset": "nope"}}

        with pytest.raises(ConfigurationError) as exc_info:
            ClientOptions.from_toml_dict(data)

        failures = exc_info.value.failures
        assert any(f.startswith("cloudflare.resilience.preset") for f in failures)
        assert any(f.startswith("cloudflare.resilience.max_retries") for f in failures)
        assert any(f.startswith("cloudflare.resilience.queue_order") for f in failures)

    def test_setup_logging(self):
        cf_logger = logging.getLogger("cfclient")
        before = list(cf_logger.handlers)
        try:
            ClientOptions(api_token="t", log_level="WARNING", structured_logging=True).setup_logging()

            added = [h for h in cf_logger.handlers if h not in before]
            assert cf_logger.level == logging.WARNING
            assert len(added) == 1
            assert added[0].formatter._fmt.startswith("{")
        finally:
            cf_logger.handlers = before
            cf_logger.setLevel(logging.NOTSET)

    def test_setup_logging_twice_keeps_one_handler(self):
        cf_logger = logging.getLogger("cfclient")
        before = list(cf_logger.handlers)
        try:
            ClientOptions(api_token="t", structured_logging=True).setup_logging()
            ClientOptions(api_token="t", log_level="DEBUG").setup_logging()

            added = [h for h in cf_logger.handlers if h not in before]
            assert len(added) == 1
            assert not added[0].formatter._fmt.startswith("{")
            assert cf_logger.level == logging.DEBUG
        finally:
            cf_logger.handlers = before
            cf_logger.setLevel(logging.NOTSET)

    def test_unknown_resilience_key_warns(self, caplog):
        caplog.set_level(logging.WARNING, logger="cfclient.config.parsing")

        options = ClientOptions.from_toml_dict({"resilience": {"max_retires": 3}})

        assert options.resilience == ResilienceConfig()
        assert "max_retires" in caplog.text


class TestLoader:
    """Layered loading from TOML files and the environment."""

    def test_project_file_overrides_home(self, isolated_env):
        home, work = isolated_env
        (home / ".cfclient.toml").write_text(
            '[cloudflare]\napi_token = "home"\nlog_level = "DEBUG"\n'
        )
        (work / "cfclient.toml").write_text('[cloudflare]\napi_token = "project"\n')

        options = load_client_options()

        assert options.api_token == "project"
        assert options.log_level == "DEBUG"

    def test_xdg_is_lowest_file_layer(self, isolated_env):
        home, _ = isolated_env
        xdg = home / ".config" / "cfclient"
        xdg.mkdir(parents=True)
        (xdg / "config.toml").write_text(
            '[cloudflare]\napi_token = "xdg"\n[cloudflare.resilience]\nmax_retries = 5\n'
        )
        (home / ".cfclient.toml").write_text('[cloudflare]\napi_token = "home"\n')

        options = load_client_options()

        assert options.api_token == "home"
        assert options.resilience.max_retries == 5

    def test_env_overrides_files(self, isolated_env):
        _, work = isolated_env
        (work / "cfclient.toml").write_text(
            '[cloudflare]\napi_token = "file"\n[cloudflare.resilience]\npermit_limit = 3\n'
        )
        os.environ["CFCLIENT_API_TOKEN"] = "env"
        os.environ["CFCLIENT_PERMIT_LIMIT"] = "7"
        os.environ["CFCLIENT_TOTAL_TIMEOUT"] = "none"

        options = load_client_options()

        assert options.api_token == "env"
        assert options.resilience.permit_limit == 7
        assert options.resilience.total_timeout is None

    def test_throttling_settings(self, isolated_env):
        _, work = isolated_env
        (work / "cfclient.toml").write_text(
            '[cloudflare]\napi_token = "t"\n'
            "[cloudflare.resilience]\nproactive_throttling = true\nquota_low_threshold = 0.25\n"
        )
        os.environ["CFCLIENT_PROACTIVE_THROTTLING"] = "false"

        options = load_client_options()

        assert options.resilience.quota_low_threshold == 0.25
        assert options.resilience.proactive_throttling is False

    def test_env_preset(self, isolated_env):
        os.environ["CFCLIENT_API_TOKEN"] = "t"
        os.environ["CFCLIENT_RESILIENCE_PRESET"] = "testing"

        options = load_client_options()

        assert options.resilience == get_resilience_preset("testing")

    def test_invalid_env_values(self, isolated_env):
        os.environ["CFCLIENT_API_TOKEN"] = "t"
        os.environ["CFCLIENT_MAX_RETRIES"] = "many"
        os.environ["CFCLIENT_RESILIENCE_PRESET"] = "turbo"

        with pytest.raises(ConfigurationError) as exc_info:
            load_client_options()

        assert len(exc_info.value.failures) == 2

    def test_explicit_file_skips_search(self, isolated_env, tmp_path):
        _, work = isolated_env
        (work / "cfclient.toml").write_text('[cloudflare]\napi_token = "project"\n')
        explicit = tmp_path / "explicit.toml"
        explicit.write_text('[cloudflare]\napi_token = "explicit"\n')

        assert load_client_options(str(explicit)).api_token == "explicit"

        os.environ[CONFIG_FILE_ENV_VAR] = str(explicit)
        assert load_client_options().api_token == "explicit"

    def test_invalid_toml(self, isolated_env, tmp_path):
        broken = tmp_path / "broken.toml"
        broken.write_text("[cloudflare\napi_token = ")

        with pytest.raises(ConfigurationError):
            load_client_options(str(broken))

    def test_missing_token_fails(self, isolated_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_client_options()

        assert "cloudflare.api_token" in str(exc_info.value)


class TestNamedClients:
    """Per-client tables under [cloudflare.clients.<name>]."""

    CONFIG = """
[cloudflare]
api_token = "default-token"
account_id = "acct-default"

[cloudflare.resilience]
max_retries = 4

[cloudflare.clients.secondary]
api_token = "secondary-token"
account_id = "acct-secondary"

[cloudflare.clients.secondary.resilience]
permit_limit = 2
queue_order = "newest-first"
"""

    def test_named_client_layers_on_defaults(self, isolated_env):
        _, work = isolated_env
        (work / "cfclient.toml").write_text(self.CONFIG)

        options = load_client_options(name="secondary")

        assert options.api_token == "secondary-token"
        assert options.account_id == "acct-secondary"
        assert options.resilience.max_retries == 4
        assert options.resilience.permit_limit == 2
        assert options.resilience.queue_order is QueueOrder.NEWEST_FIRST

    def test_default_client_ignores_named_tables(self, isolated_env):
        _, work = isolated_env
        (work / "cfclient.toml").write_text(self.CONFIG)

        options = load_client_options()

        assert options.api_token == "default-token"
        assert options.resilience.permit_limit == ResilienceConfig().permit_limit

    def test_env_credentials_only_for_default(self, isolated_env):
        _, work = isolated_env
        (work / "cfclient.toml").write_text(self.CONFIG)
        os.environ["CFCLIENT_API_TOKEN"] = "env-token"

        assert load_client_options().api_token == "env-token"
        assert load_client_options(name="secondary").api_token == "secondary-token"

    def test_unknown_client(self, isolated_env):
        _, work = isolated_env
        (work / "cfclient.toml").write_text(self.CONFIG)

        with pytest.raises(ConfigurationError) as exc_info:
            load_client_options(name="missing")

        assert exc_info.value.failures == ["cloudflare.clients.missing: no such client configured"]

    def test_named_client_validation_prefix(self, isolated_env):
        _, work = isolated_env
        (work / "cfclient.toml").write_text(
            self.CONFIG + '\n[cloudflare.clients.broken]\napi_token = ""\n'
        )

        with pytest.raises(ConfigurationError) as exc_info:
            load_client_options(name="broken")

        assert exc_info.value.failures == ["cloudflare.clients.broken.api_token: an API token is required"]
