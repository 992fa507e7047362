"""
L1 Domain — config.yaml rendering and the external-ui edit (pure).

No file I/O here: the execution layer reads and writes, this module
only turns parameters into text and text into text.
"""

from __future__ import annotations

import json
import re
import secrets
import string
from dataclasses import dataclass

import yaml

from mihomo_installer.core.services.provision.data.config_template import (
    CONFIG_TEMPLATE,
    GEOX_MIRROR,
    HEALTH_CHECK_URL,
    UI_KEY,
)
from mihomo_installer.core.services.provision.data.constants import SECRET_LENGTH

SECRET_ALPHABET = string.ascii_letters + string.digits

_TOP_LEVEL_KEY_RE = r"^{key}:[^\n]*$"


class ConfigRenderError(ValueError):
    """Rendered or edited text is not a valid YAML mapping."""


@dataclass(frozen=True)
class ConfigParams:
    """Values substituted into the template."""

    mixed_port: int
    controller: str
    secret: str
    sub_url: str
    ui_path: str | None = None


def generate_secret(length: int = SECRET_LENGTH) -> str:
    """Random API secret drawn from ``[A-Za-z0-9]`` with ``secrets``."""
    return "".join(secrets.choice(SECRET_ALPHABET) for _ in range(length))


def yaml_quote(value: str) -> str:
    """Double-quoted YAML scalar (JSON strings are valid YAML)."""
    return json.dumps(value, ensure_ascii=False)


def parse_config(text: str) -> dict:
    """Parse config text and insist on a top-level mapping."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigRenderError(f"config is not valid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigRenderError(
            f"config must be a YAML mapping, got {type(data).__name__}"
        )
    return data


def render_config(params: ConfigParams) -> str:
    """Fill the template and check the result parses back."""
    ui_line = f"\n{UI_KEY}: {params.ui_path}\n" if params.ui_path else ""
    values = {
        "mixed_port": str(params.mixed_port),
        "controller": yaml_quote(params.controller),
        "secret": yaml_quote(params.secret),
        "sub_url": yaml_quote(params.sub_url),
        "ui_line": ui_line,
        "geox_mirror": GEOX_MIRROR,
        "health_check_url": HEALTH_CHECK_URL,
    }
    text = CONFIG_TEMPLATE
    for key, value in values.items():
        text = text.replace(f"{{{key}}}", value)

    data = parse_config(text)
    if data.get("secret") != params.secret or data.get("mixed-port") != params.mixed_port:
        raise ConfigRenderError("rendered config does not round-trip its parameters")
    return text


def set_external_ui(text: str, ui_path: str) -> tuple[str, bool]:
    """Make ``external-ui`` point at ``ui_path``.

    The key is checked on the parsed document, so spacing or quoting
    differences do not count as "missing". The edit itself is textual
    to keep comments and layout:

    - key already equal → unchanged
    - key present with another value → that top-level line is rewritten
    - key absent → inserted after the ``secret:`` line, else appended

    Returns:
        ``(new_text, changed)``.
    """
    data = parse_config(text)
    if data.get(UI_KEY) == ui_path:
        return text, False

    line = f"{UI_KEY}: {ui_path}"
    key_re = re.compile(_TOP_LEVEL_KEY_RE.format(key=re.escape(UI_KEY)), re.MULTILINE)
    secret_re = re.compile(_TOP_LEVEL_KEY_RE.format(key="secret"), re.MULTILINE)

    if UI_KEY in data and key_re.search(text):
        new_text = key_re.sub(line, text, count=1)
    elif m := secret_re.search(text):
        new_text = text[: m.end()] + "\n" + line + text[m.end():]
    else:
        sep = "" if not text or text.endswith("\n") else "\n"
        new_text = f"{text}{sep}{line}\n"

    if parse_config(new_text).get(UI_KEY) != ui_path:
        raise ConfigRenderError(f"could not set {UI_KEY} in config")
    return new_text, True
