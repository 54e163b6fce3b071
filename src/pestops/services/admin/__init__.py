"""Privileged operations."""
