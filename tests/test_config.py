"""Tests for configuration storage, resolution and API key storage."""

from unittest.mock import patch

import keyring.errors
import pytest
import yaml

from smix.config.resolver import ProviderConfig, resolve_provider_config
from smix.config.secrets import SecretStore
from smix.config.storage import (
    ConfigKeyError,
    ConfigStore,
    default_config_path,
    ensure_config_exists,
)
from smix.config.template import CONFIG_TEMPLATE


def make_store(tmp_path, data, environ=None) -> ConfigStore:
    return ConfigStore(tmp_path / "config.yaml", data=data, environ=environ or {})


class TestResolveProviderConfig:
    """Tests for per-command provider resolution."""

    def test_command_settings_override_global(self, tmp_path):
        store = make_store(tmp_path, {
            "provider": "claude",
            "model": "sonnet",
            "commands": {"ask": {"provider": "gemini", "model": "gemini-flash"}},
        })

        cfg = resolve_provider_config("ask", store)

        assert cfg == ProviderConfig(provider="gemini", model="gemini-flash")

    def test_fields_fall_back_independently(self, tmp_path):
        """Test a command provider combines with the global model."""
        store = make_store(tmp_path, {
            "model": "sonnet",
            "commands": {"do": {"provider": "gemini"}},
        })

        cfg = resolve_provider_config("do", store)

        assert cfg == ProviderConfig(provider="gemini", model="sonnet")

    def test_global_only(self, tmp_path):
        store = make_store(tmp_path, {"provider": "claude", "model": "sonnet"})

        assert resolve_provider_config("pr", store) == ProviderConfig("claude", "sonnet")

    def test_nothing_configured(self, tmp_path):
        cfg = resolve_provider_config("ask", make_store(tmp_path, {}))

        assert cfg == ProviderConfig(provider="", model="")

    def test_other_command_settings_ignored(self, tmp_path):
        store = make_store(tmp_path, {
            "provider": "claude",
            "commands": {"ask": {"provider": "gemini"}},
        })

        assert resolve_provider_config("do", store).provider == "claude"

    def test_environment_override(self, tmp_path):
        store = make_store(
            tmp_path,
            {"provider": "claude"},
            environ={"SMIX_COMMANDS_ASK_MODEL": "opus"},
        )

        assert resolve_provider_config("ask", store) == ProviderConfig("claude", "opus")


class TestApplyFlags:
    """Tests for ProviderConfig.apply_flags."""

    def test_model_flag_only(self):
        cfg = ProviderConfig(provider="claude", model="sonnet")

        cfg.apply_flags("", "opus")

        assert cfg == ProviderConfig(provider="claude", model="opus")

    def test_empty_flags_leave_config_unchanged(self):
        cfg = ProviderConfig(provider="claude", model="sonnet")

        cfg.apply_flags("", "")

        assert cfg == ProviderConfig(provider="claude", model="sonnet")

    def test_none_flags_leave_config_unchanged(self):
        cfg = ProviderConfig(provider="claude", model="sonnet")

        cfg.apply_flags(None, None)

        assert cfg == ProviderConfig(provider="claude", model="sonnet")

    def test_both_flags(self):
        cfg = ProviderConfig(provider="claude", model="sonnet")

        cfg.apply_flags("gemini", "gemini-3-pro-preview")

        assert cfg == ProviderConfig(provider="gemini", model="gemini-3-pro-preview")


class TestConfigStore:
    """Tests for ConfigStore."""

    def test_open_creates_template(self, config_file):
        """Test first run writes the commented template."""
        store = ConfigStore.open(config_file)

        assert config_file.exists()
        assert config_file.read_text(encoding="utf-8") == CONFIG_TEMPLATE
        assert store.get("provider") == "claude"
        assert store.get("log_level") == "info"

    def test_open_keeps_existing_file(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("provider: gemini\n", encoding="utf-8")

        store = ConfigStore.open(config_file)

        assert store.get("provider") == "gemini"
        assert config_file.read_text(encoding="utf-8") == "provider: gemini\n"

    def test_load_rejects_non_mapping(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError):
            ConfigStore.open(config_file)

    def test_dotted_get(self, tmp_path):
        store = make_store(tmp_path, {"commands": {"ask": {"model": "haiku"}}})

        assert store.get("commands.ask.model") == "haiku"
        assert store.get("commands.do.model") is None
        assert store.get("commands.do.model", "fallback") == "fallback"
        assert store.get_str("commands.do.model") == ""

    def test_is_set(self, tmp_path):
        store = make_store(tmp_path, {"provider": "claude", "providers": {"gemini": None}})

        assert store.is_set("provider")
        assert not store.is_set("model")
        assert not store.is_set("providers.gemini")
        assert not store.is_set("provider.nested")

    def test_environment_wins_over_file(self, tmp_path):
        store = make_store(tmp_path, {"provider": "claude"}, environ={"SMIX_PROVIDER": "gemini"})

        assert store.get("provider") == "gemini"
        assert store.is_set("provider")

    def test_require_missing_key(self, tmp_path):
        store = make_store(tmp_path, {})

        with pytest.raises(ConfigKeyError) as exc_info:
            store.require("commands.ask.model")

        assert str(exc_info.value) == "key 'commands.ask.model' not found in configuration"

    def test_set_persists_nested_key(self, tmp_path):
        store = make_store(tmp_path, {"provider": "claude"})

        store.set("commands.ask.provider", "gemini")

        saved = yaml.safe_load(store.config_file.read_text(encoding="utf-8"))
        assert saved == {"provider": "claude", "commands": {"ask": {"provider": "gemini"}}}
        assert store.get("commands.ask.provider") == "gemini"

    def test_set_replaces_scalar_in_path(self, tmp_path):
        store = make_store(tmp_path, {"commands": "oops"})

        store.set("commands.do.model", "opus")

        assert store.get("commands.do.model") == "opus"


class TestConfigDiscovery:
    """Tests for config file discovery."""

    def test_defaults_to_xdg_path(self, tmp_path):
        path = default_config_path(home=tmp_path, environ={})

        assert path == tmp_path / ".config" / "smix" / "config.yaml"

    def test_respects_xdg_config_home(self, tmp_path):
        xdg = tmp_path / "xdg"

        path = default_config_path(home=tmp_path, environ={"XDG_CONFIG_HOME": str(xdg)})

        assert path == xdg / "smix" / "config.yaml"

    def test_falls_back_to_dotfile(self, tmp_path):
        dotfile = tmp_path / ".smix.yaml"
        dotfile.write_text("provider: claude\n", encoding="utf-8")

        assert default_config_path(home=tmp_path, environ={}) == dotfile

    def test_xdg_file_preferred_over_dotfile(self, tmp_path):
        (tmp_path / ".smix.yaml").write_text("provider: claude\n", encoding="utf-8")
        xdg_file = tmp_path / ".config" / "smix" / "config.yaml"
        xdg_file.parent.mkdir(parents=True)
        xdg_file.write_text("provider: gemini\n", encoding="utf-8")

        assert default_config_path(home=tmp_path, environ={}) == xdg_file

    def test_ensure_config_exists(self, config_file):
        assert ensure_config_exists(config_file) is True
        assert ensure_config_exists(config_file) is False


class TestSecretStore:
    """Tests for keyring-backed API key storage."""

    def test_get_api_key(self):
        with patch("smix.config.secrets.keyring.get_password", return_value="stored") as get:
            assert SecretStore().get_api_key("gemini") == "stored"

        get.assert_called_once_with("smix", "gemini")

    def test_get_api_key_keyring_unavailable(self):
        with patch(
            "smix.config.secrets.keyring.get_password",
            side_effect=keyring.errors.KeyringError("no backend"),
        ):
            assert SecretStore().get_api_key("gemini") is None

    def test_set_api_key(self):
        with patch("smix.config.secrets.keyring.set_password") as set_password:
            SecretStore().set_api_key("gemini", "secret")

        set_password.assert_called_once_with("smix", "gemini", "secret")

    def test_set_api_key_propagates_errors(self):
        with patch(
            "smix.config.secrets.keyring.set_password",
            side_effect=keyring.errors.KeyringError("locked"),
        ):
            with pytest.raises(keyring.errors.KeyringError):
                SecretStore().set_api_key("gemini", "secret")

    def test_delete_missing_key_is_ignored(self):
        with patch(
            "smix.config.secrets.keyring.delete_password",
            side_effect=keyring.errors.PasswordDeleteError("missing"),
        ):
            SecretStore().delete_api_key("gemini")

    def test_resolve_prefers_environment(self, monkeypatch):
        monkeypatch.setenv("SMIX_GEMINI_API_KEY", "from-env")

        with patch("smix.config.secrets.keyring.get_password", return_value="stored") as get:
            assert SecretStore().resolve_api_key("gemini", "SMIX_GEMINI_API_KEY") == "from-env"

        get.assert_not_called()

    def test_resolve_falls_back_to_keyring(self):
        with patch("smix.config.secrets.keyring.get_password", return_value="stored"):
            assert SecretStore().resolve_api_key("gemini", "SMIX_GEMINI_API_KEY") == "stored"

    def test_resolve_nothing_configured(self):
        with patch("smix.config.secrets.keyring.get_password", return_value=None):
            assert SecretStore().resolve_api_key("gemini", "SMIX_GEMINI_API_KEY") is None
