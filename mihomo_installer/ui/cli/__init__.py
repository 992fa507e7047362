"""Click sub-command groups registered by ``mihomo_installer.main``."""
