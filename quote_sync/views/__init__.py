"""
Derived view module.

Computes per-instrument direction and percent change against the baseline
and produces stably sorted projections of the quote set.
"""
