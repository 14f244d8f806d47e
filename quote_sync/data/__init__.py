"""
Quote ingestion and normalization module.

Turns poll batches and push messages into canonical instrument quotes.
"""
