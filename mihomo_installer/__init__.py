"""mihomo installer — provision the mihomo proxy core on a Linux host."""

__version__ = "0.1.0"
