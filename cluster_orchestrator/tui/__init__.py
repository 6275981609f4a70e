"""TUI module for watching a reconciled cluster."""

from cluster_orchestrator.tui.app import ClusterDashboard

__all__ = ["ClusterDashboard"]
