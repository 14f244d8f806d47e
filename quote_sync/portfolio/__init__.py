"""
Portfolio valuation module.

Joins externally owned positions with live quotes to compute market value
and unrealized P/L, and ranks accounts by total value.
"""
