"""
L4 Execution — side effects.

These functions WRITE to the system: HTTP downloads, file writes,
package installs, systemctl and git subprocesses.
"""
