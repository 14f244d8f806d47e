"""
Quote Sync - Live Quote Synchronization and Portfolio Analytics Engine

Keeps a client session's view of instrument quotes current through a push
channel or a polling fallback, tracks short price histories, derives trend
indicators and sorted views, and values held positions against live quotes.
"""

__version__ = "0.1.0"
__author__ = "Quote Sync Team"
