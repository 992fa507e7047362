"""
L5 Orchestration — the install pipeline.
"""

from mihomo_installer.core.services.provision.orchestration.orchestrator import (  # noqa: F401
    run_install,
)
