"""Typed access layer for the V2EX forum API and the per-user side-data store."""

__version__ = "0.1.0"
