"""
Quote transport module.

Chooses between a push subscription and an interval poll, fails over from
push to poll on channel failure, and guarantees teardown leaves no running
timers, open channels or late callbacks.
"""
