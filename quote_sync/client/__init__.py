"""
API client module.

Session context and the HTTP gateway used for polling, portfolio, trade,
candle and system-status requests.
"""
