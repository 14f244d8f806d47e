"""
Utility functions module.

Time Semantics:
- Observation timestamps carried by a quote payload are authoritative
- Receipt wall-clock time is only a fallback when the payload has none
- Only source-timed quotes take part in staleness comparisons
"""
