"""
L3 Detection — systemd unit status.

Read-only probe used for the end-of-install status display. Never
raises: a broken status query is not an install failure.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

_PROPERTIES = ("ActiveState", "SubState", "LoadState", "UnitFileState")


def get_service_status(service: str) -> dict:
    """Query ``systemctl show`` for a unit.

    Returns::

        {"service": "mihomo", "ok": True, "active": True,
         "state": "active", "sub_state": "running",
         "loaded": True, "enabled": True}

    ``ok`` is False when systemctl could not be queried at all.
    """
    try:
        r = subprocess.run(
            ["systemctl", "show", service,
             "--property=" + ",".join(_PROPERTIES)],
            capture_output=True, text=True, timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("systemctl show %s failed: %s", service, e)
        return {"service": service, "ok": False, "active": None,
                "state": "unknown", "error": str(e)}

    if r.returncode != 0:
        return {"service": service, "ok": False, "active": None,
                "state": "unknown", "error": r.stderr.strip()}

    props: dict[str, str] = {}
    for line in r.stdout.splitlines():
        key, _, val = line.strip().partition("=")
        if key:
            props[key.lower()] = val

    return {
        "service": service,
        "ok": True,
        "active": props.get("activestate") == "active",
        "state": props.get("activestate", "unknown"),
        "sub_state": props.get("substate", "unknown"),
        "loaded": props.get("loadstate") == "loaded",
        "enabled": props.get("unitfilestate") == "enabled",
    }
