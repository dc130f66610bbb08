"""Lifecycle of the remote resources owned by one invocation."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

from loguru import logger

from sift.core.deadline import Deadline
from sift.errors import AcquisitionError
from sift.remote.base import RemoteServices

T = TypeVar("T")

ARTIFACT_PURPOSE = "assistants"
LARGE_UPLOAD_BYTES = 100 * 1024 * 1024
DEFAULT_TOOLS = ("code_interpreter",)


class HandleState(StrEnum):
    UNALLOCATED = "unallocated"
    ALLOCATED = "allocated"
    RELEASED = "released"


@dataclass(frozen=True)
class SessionSpec:
    """What to allocate. ``data`` is None when the dataset travels inline."""

    model: str
    instructions: str
    data: bytes | None = None
    file_name: str = "dataset.csv"
    tools: tuple[str, ...] = DEFAULT_TOOLS


@dataclass
class SessionHandle:
    worker_id: str | None = None
    thread_id: str | None = None
    artifact_id: str | None = None
    state: HandleState = HandleState.UNALLOCATED


class SessionLease:
    """Acquire a session handle on enter, release every allocated part on exit.

    Release never raises. Failures are logged and kept in ``release_errors``.
    """

    def __init__(
        self,
        remote: RemoteServices,
        spec: SessionSpec,
        *,
        deadline: Deadline,
        release_timeout_seconds: float,
    ) -> None:
        self._remote = remote
        self._spec = spec
        self._deadline = deadline
        self._release_timeout_seconds = release_timeout_seconds
        self._released: set[str] = set()
        self._release_errors: list[str] = []
        self.handle = SessionHandle()

    @property
    def release_errors(self) -> tuple[str, ...]:
        return tuple(self._release_errors)

    async def __aenter__(self) -> SessionHandle:
        await self.acquire()
        return self.handle

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.release()

    async def acquire(self) -> SessionHandle:
        if self.handle.state is not HandleState.UNALLOCATED:
            raise RuntimeError(f"session handle is {self.handle.state}")

        spec = self._spec
        provisioner = self._remote.provisioner
        try:
            if spec.data is not None:
                if len(spec.data) > LARGE_UPLOAD_BYTES:
                    logger.warning("session.upload.large size_kb={} name={}", len(spec.data) // 1024, spec.file_name)
                self.handle.artifact_id = await self._step(
                    "upload",
                    lambda: self._remote.artifacts.upload(spec.data, ARTIFACT_PURPOSE, spec.file_name),
                )
                logger.info("session.upload.done artifact={}", self.handle.artifact_id)

            artifact_ids = [self.handle.artifact_id] if self.handle.artifact_id else []
            self.handle.worker_id = await self._step(
                "worker",
                lambda: provisioner.create_worker(spec.model, spec.instructions, spec.tools, artifact_ids),
            )
            self.handle.thread_id = await self._step("thread", provisioner.create_thread)
        except AcquisitionError:
            await self.release()
            raise

        self.handle.state = HandleState.ALLOCATED
        logger.info(
            "session.acquired worker={} thread={} artifact={} model={}",
            self.handle.worker_id,
            self.handle.thread_id,
            self.handle.artifact_id,
            spec.model,
        )
        return self.handle

    async def _step(self, stage: str, call: Callable[[], Awaitable[T]]) -> T:
        if self._deadline.expired():
            raise AcquisitionError(f"deadline expired before {stage}", stage=stage)
        try:
            async with asyncio.timeout_at(self._deadline.when):
                return await call()
        except TimeoutError as exc:
            logger.error("session.acquire.timeout stage={}", stage)
            raise AcquisitionError(f"{stage} did not finish before the deadline", stage=stage) from exc
        except Exception as exc:
            logger.opt(exception=exc).error("session.acquire.error stage={} error={!s}", stage, exc)
            raise AcquisitionError(f"{stage} failed: {exc}", stage=stage) from exc

    async def release(self) -> None:
        handle = self.handle
        if handle.state is HandleState.RELEASED:
            return
        provisioner = self._remote.provisioner
        await self._release_one("thread", handle.thread_id, provisioner.delete_thread)
        await self._release_one("worker", handle.worker_id, provisioner.delete_worker)
        await self._release_one("artifact", handle.artifact_id, self._remote.artifacts.delete_artifact)
        handle.state = HandleState.RELEASED
        logger.info("session.released errors={}", len(self._release_errors))

    async def _release_one(
        self,
        kind: str,
        resource_id: str | None,
        call: Callable[[str], Awaitable[None]],
    ) -> None:
        if resource_id is None or kind in self._released:
            return
        self._released.add(kind)
        try:
            async with asyncio.timeout(self._release_timeout_seconds):
                await call(resource_id)
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            logger.opt(exception=exc).warning(
                "session.release.error resource={} id={} error={}", kind, resource_id, reason
            )
            self._release_errors.append(f"{kind} {resource_id}: {reason}")
        else:
            logger.debug("session.release.done resource={} id={}", kind, resource_id)
