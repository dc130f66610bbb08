"""Contracts for the remote agent service."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from sift.types import RemoteReply


class ArtifactStore(Protocol):
    async def upload(self, data: bytes, purpose: str, name: str) -> str: ...

    async def delete_artifact(self, artifact_id: str) -> None: ...

    async def download_artifact(self, artifact_id: str) -> bytes: ...


class WorkerProvisioner(Protocol):
    async def create_worker(
        self,
        model: str,
        instructions: str,
        tools: Sequence[str],
        artifact_ids: Sequence[str],
    ) -> str: ...

    async def delete_worker(self, worker_id: str) -> None: ...

    async def create_thread(self) -> str: ...

    async def delete_thread(self, thread_id: str) -> None: ...


class TurnTransport(Protocol):
    def send(self, thread_id: str, worker_id: str, text: str) -> AsyncIterator[RemoteReply]: ...


@dataclass(frozen=True)
class RemoteServices:
    """The three collaborators one invocation talks to."""

    artifacts: ArtifactStore
    provisioner: WorkerProvisioner
    transport: TurnTransport

    @classmethod
    def from_backend(cls, backend: Any) -> RemoteServices:
        """Use one object that implements all three contracts."""

        return cls(artifacts=backend, provisioner=backend, transport=backend)
