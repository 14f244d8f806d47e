"""
Session state module.

Owns the per-instrument rolling price history, the per-cycle baseline
prices and the current quote set. All state is in-memory for one session.
"""
