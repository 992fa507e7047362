"""
Install report — what a run did and how to use the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mihomo_installer.core.models.environment import EnvironmentDescriptor
from mihomo_installer.core.models.receipt import StageReceipt
from mihomo_installer.core.models.release import SelectedArtifact


@dataclass
class InstallReport:
    """Ordered stage receipts plus the connection summary."""

    receipts: list[StageReceipt] = field(default_factory=list)
    environment: EnvironmentDescriptor | None = None
    artifact: SelectedArtifact | None = None
    mixed_port: int = 0
    controller: str = ""
    secret: str | None = None           # set only when this run wrote the config
    ui_installed: bool = False
    error: str | None = None

    def add(self, receipt: StageReceipt) -> StageReceipt:
        self.receipts.append(receipt)
        return receipt

    def get(self, stage: str) -> StageReceipt | None:
        for receipt in self.receipts:
            if receipt.stage == stage:
                return receipt
        return None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def soft_failures(self) -> list[StageReceipt]:
        return [r for r in self.receipts if r.failed]

    @property
    def proxy_url(self) -> str:
        return f"http://127.0.0.1:{self.mixed_port}"

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "error": self.error,
            "environment": self.environment.model_dump() if self.environment else None,
            "artifact": {
                "name": self.artifact.asset.name,
                "url": self.artifact.asset.download_url,
                "tag": self.artifact.tag,
                "tier": self.artifact.tier,
            } if self.artifact else None,
            "proxy": {"mixed_port": self.mixed_port, "url": self.proxy_url},
            "controller": self.controller,
            "secret": self.secret,
            "ui_installed": self.ui_installed,
            "stages": [r.model_dump() for r in self.receipts],
        }
