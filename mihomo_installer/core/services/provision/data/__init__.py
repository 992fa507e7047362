"""
L0 Data — constants and the configuration template.

Pure data. No logic, no I/O.
"""
