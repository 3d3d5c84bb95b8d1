"""Ledger storage layer.

A single DuckDB file backs the key-value store that persists the
user's holdings between sessions.
"""
