"""Prompt analysis and rewrite orchestration engine."""

__version__ = "0.1.0"
