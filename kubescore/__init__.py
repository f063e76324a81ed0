"""Scoring and recommendations for Kubernetes object definitions."""

__version__ = "0.1.0"