"""Parsing helpers."""
