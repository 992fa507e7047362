"""
Settings loader — merges CLI options, environment and a settings file.

Precedence, highest first:
    CLI option  >  environment variable  >  settings file  >  default

Environment variable names follow the shell installer this tool
replaces (``SUB_URL``, ``SECRET``, ``MIXED_PORT``, ``CTRL_ADDR``,
``INSTALL_UI``, ``FORCE_CONFIG``) so existing invocations keep working.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from mihomo_installer.core.config.settings import InstallSettings

logger = logging.getLogger(__name__)

# env var → settings field
ENV_VARS: dict[str, str] = {
    "SUB_URL": "sub_url",
    "SECRET": "secret",
    "MIXED_PORT": "mixed_port",
    "CTRL_ADDR": "controller",
    "INSTALL_UI": "install_ui",
    "FORCE_CONFIG": "force_config",
    "MIHOMO_VERSION": "release",
    "MIHOMO_CPU_LEVEL": "cpu_level",
    "TIER_FALLBACK": "tier_fallback",
    "RUN_BUDGET": "run_budget",
}

_BOOL_FIELDS = {"install_ui", "force_config", "tier_fallback", "skip_deps", "skip_service"}
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


class ConfigError(Exception):
    """Raised when installer settings are invalid or unreadable."""


def parse_flag(value: Any) -> bool:
    """Interpret a shell-style flag (``1``/``true``/``yes``/``on``)."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    raise ConfigError(f"Not a boolean flag: {value!r}")


def settings_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect settings fields from environment variables."""
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for var, key in ENV_VARS.items():
        raw = env.get(var)
        # empty means unset, like the shell installer's ${VAR:-default}
        if raw is None or (key not in _BOOL_FIELDS and not raw.strip()):
            continue
        values[key] = parse_flag(raw) if key in _BOOL_FIELDS else raw
    return values


def settings_from_file(path: Path) -> dict[str, Any]:
    """Read a YAML settings file.

    Keys are settings field names; hyphenated spellings
    (``mixed-port``) are accepted too.

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    values = {str(k).replace("-", "_"): v for k, v in data.items()}
    for key in _BOOL_FIELDS & values.keys():
        values[key] = parse_flag(values[key])
    logger.debug("Loaded settings from %s: %s", path, sorted(values))
    return values


def load_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    settings_file: Path | None = None,
) -> InstallSettings:
    """Build validated settings from every source.

    Args:
        overrides: CLI values; ``None`` entries mean "not given".
        environ: Environment mapping (default: ``os.environ``).
        settings_file: Optional YAML settings file.

    Raises:
        ConfigError: If any value fails validation.
    """
    merged: dict[str, Any] = {}
    if settings_file is not None:
        merged.update(settings_from_file(settings_file))
    merged.update(settings_from_env(environ))
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        settings = InstallSettings.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid installer settings: {e}") from e

    logger.debug(
        "Settings: port=%d controller=%s ui=%s force=%s release=%s",
        settings.mixed_port, settings.controller, settings.install_ui,
        settings.force_config, settings.release,
    )
    return settings
