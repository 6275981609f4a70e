"""Lifecycle orchestrator for multi-role YTsaurus-style clusters on Kubernetes."""

__version__ = "0.1.0"
