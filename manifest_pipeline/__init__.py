"""Manifest acquisition and local-inspection pipeline."""

__version__ = "0.1.0"
