"""
L3 Detection — read-only host probes.

These functions READ system state but never WRITE.
Subprocess calls, file reads, env var reads — all read-only.
"""
