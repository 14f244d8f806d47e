"""
Configuration module.

Default parameters, YAML-backed loading with 3-tier precedence, and
validation of the merged result.
"""
