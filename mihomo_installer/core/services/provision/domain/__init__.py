"""
L1 Domain — pure functions, no I/O, no subprocess.

Clock reads (``Deadline``) and randomness (``generate_secret``) are
the only inputs that do not come in as arguments.
"""
