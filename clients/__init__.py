"""Data provider clients."""
