"""Utility modules for token-indexer."""
