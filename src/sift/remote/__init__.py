"""Remote agent service contracts and backends."""

from .base import ArtifactStore, RemoteServices, TurnTransport, WorkerProvisioner

__all__ = ["ArtifactStore", "RemoteServices", "TurnTransport", "WorkerProvisioner"]
