"""
Tests for installer settings and the settings loader.
"""

from pathlib import Path

import pytest

from mihomo_installer.core.config.loader import (
    ConfigError,
    load_settings,
    parse_flag,
    settings_from_env,
    settings_from_file,
)
from mihomo_installer.core.config.settings import InstallSettings


class TestDefaults:
    def test_defaults(self):
        s = InstallSettings()
        assert s.mixed_port == 7890
        assert s.controller == "127.0.0.1:9090"
        assert s.install_ui is False
        assert s.force_config is False
        assert s.release == "latest"
        assert s.tier_fallback is False
        assert s.run_budget == 900
        assert s.checksum is None


class TestValidation:
    @pytest.mark.parametrize("port", [0, 65536, -1])
    def test_port_range(self, port):
        with pytest.raises(ValueError):
            InstallSettings(mixed_port=port)

    @pytest.mark.parametrize("ctrl", ["0.0.0.0:9090", "localhost:1", "[::1]:9090", ":9090"])
    def test_controller_ok(self, ctrl):
        assert InstallSettings(controller=ctrl).controller == ctrl

    @pytest.mark.parametrize("ctrl", ["9090", "host:", "host:70000", "a b:90"])
    def test_controller_bad(self, ctrl):
        with pytest.raises(ValueError):
            InstallSettings(controller=ctrl)

    def test_sub_url_must_be_http(self):
        with pytest.raises(ValueError, match="http"):
            InstallSettings(sub_url="ftp://example.com/sub")

    def test_blank_sub_url_is_none(self):
        assert InstallSettings(sub_url="  ").sub_url is None

    def test_empty_secret_is_none(self):
        assert InstallSettings(secret="").secret is None

    def test_secret_whitespace(self):
        with pytest.raises(ValueError):
            InstallSettings(secret="has space")

    @pytest.mark.parametrize("secret", ["abc\x7fdef", "abc\x00", "tab\u200bhidden"])
    def test_secret_control_characters(self, secret):
        with pytest.raises(ValueError, match="control characters"):
            InstallSettings(secret=secret)

    def test_sha256_normalized(self):
        digest = "AB" * 32
        s = InstallSettings(sha256=f"sha256:{digest}")
        assert s.sha256 == digest.lower()
        assert s.checksum == f"sha256:{digest.lower()}"

    def test_sha256_bad(self):
        with pytest.raises(ValueError):
            InstallSettings(sha256="nothex")


class TestParseFlag:
    @pytest.mark.parametrize("raw", ["1", "true", "YES", "on", True])
    def test_true(self, raw):
        assert parse_flag(raw) is True

    @pytest.mark.parametrize("raw", ["0", "false", "No", "off", "", False])
    def test_false(self, raw):
        assert parse_flag(raw) is False

    def test_garbage(self):
        with pytest.raises(ConfigError):
            parse_flag("maybe")


class TestEnv:
    def test_maps_shell_names(self):
        values = settings_from_env({
            "SUB_URL": "https://s.example/x",
            "CTRL_ADDR": "0.0.0.0:9090",
            "INSTALL_UI": "1",
            "FORCE_CONFIG": "0",
            "MIXED_PORT": "7891",
            "UNRELATED": "x",
        })
        assert values == {
            "sub_url": "https://s.example/x",
            "controller": "0.0.0.0:9090",
            "install_ui": True,
            "force_config": False,
            "mixed_port": "7891",
        }

    @pytest.mark.parametrize("var", [
        "MIXED_PORT", "CTRL_ADDR", "MIHOMO_CPU_LEVEL", "RUN_BUDGET",
        "MIHOMO_VERSION", "SUB_URL", "SECRET",
    ])
    @pytest.mark.parametrize("raw", ["", "  "])
    def test_empty_value_means_unset(self, var, raw):
        assert settings_from_env({var: raw}) == {}
        assert load_settings(environ={var: raw}) == InstallSettings()

    def test_empty_flag_is_false(self):
        assert settings_from_env({"INSTALL_UI": ""}) == {"install_ui": False}

    def test_uses_os_environ(self, monkeypatch):
        monkeypatch.setenv("SECRET", "fromenv")
        assert settings_from_env()["secret"] == "fromenv"


class TestFile:
    def test_hyphenated_keys(self, tmp_path: Path):
        f = tmp_path / "s.yaml"
        f.write_text("mixed-port: 1080\ninstall-ui: yes\nsub_url: https://a.example/\n")
        values = settings_from_file(f)
        assert values == {"mixed_port": 1080, "install_ui": True,
                          "sub_url": "https://a.example/"}

    def test_empty_file(self, tmp_path: Path):
        f = tmp_path / "s.yaml"
        f.write_text("")
        assert settings_from_file(f) == {}

    def test_missing(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            settings_from_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        f = tmp_path / "s.yaml"
        f.write_text("a: [broken")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            settings_from_file(f)

    def test_not_mapping(self, tmp_path: Path):
        f = tmp_path / "s.yaml"
        f.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            settings_from_file(f)


class TestPrecedence:
    def test_cli_over_env_over_file(self, tmp_path: Path):
        f = tmp_path / "s.yaml"
        f.write_text("mixed_port: 1000\nsecret: file\ncontroller: '127.0.0.1:1'\n")
        env = {"MIXED_PORT": "2000", "SECRET": "env"}
        s = load_settings({"mixed_port": 3000, "secret": None},
                          environ=env, settings_file=f)
        assert s.mixed_port == 3000
        assert s.secret == "env"
        assert s.controller == "127.0.0.1:1"

    def test_cli_false_overrides_env_true(self):
        s = load_settings({"install_ui": False}, environ={"INSTALL_UI": "1"})
        assert s.install_ui is False

    def test_none_means_not_given(self):
        s = load_settings({"install_ui": None}, environ={"INSTALL_UI": "1"})
        assert s.install_ui is True

    def test_invalid_env_value(self):
        with pytest.raises(ConfigError, match="Invalid installer settings"):
            load_settings(environ={"MIXED_PORT": "abc"})

    def test_bad_flag_in_env(self):
        with pytest.raises(ConfigError):
            load_settings(environ={"INSTALL_UI": "sometimes"})
