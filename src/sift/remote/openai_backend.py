"""OpenAI Assistants implementation of the remote contracts."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Sequence
from typing import Any

from loguru import logger
from openai import AsyncOpenAI

from sift.config import Settings
from sift.errors import ApiKeyNotConfiguredError, RemoteError
from sift.remote.base import RemoteServices
from sift.types import RemoteReply, TurnRole

WORKER_NAME = "Sift CSV Analyzer"
FAILED_RUN_EVENTS = frozenset({"thread.run.failed", "thread.run.expired", "thread.run.cancelled"})
TERMINAL_RUN_EVENTS = FAILED_RUN_EVENTS | {"thread.run.completed", "thread.run.incomplete"}
RUN_CANCEL_TIMEOUT_SECONDS = 10.0

_ROLES = {"assistant": TurnRole.WORKER, "user": TurnRole.REQUESTER}


class OpenAIAssistantsBackend:
    """Artifacts are files, workers are assistants, turns come from streamed runs."""

    def __init__(self, client: AsyncOpenAI, *, worker_name: str = WORKER_NAME) -> None:
        self._client = client
        self._worker_name = worker_name

    async def upload(self, data: bytes, purpose: str, name: str) -> str:
        uploaded = await self._client.files.create(file=(name, data), purpose=purpose)
        return uploaded.id

    async def delete_artifact(self, artifact_id: str) -> None:
        await self._client.files.delete(artifact_id)

    async def download_artifact(self, artifact_id: str) -> bytes:
        response = await self._client.files.content(artifact_id)
        return response.content

    async def create_worker(
        self,
        model: str,
        instructions: str,
        tools: Sequence[str],
        artifact_ids: Sequence[str],
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": model,
            "name": self._worker_name,
            "instructions": instructions,
            "tools": [{"type": tool} for tool in tools],
        }
        if artifact_ids:
            kwargs["tool_resources"] = {"code_interpreter": {"file_ids": list(artifact_ids)}}
        assistant = await self._client.beta.assistants.create(**kwargs)
        return assistant.id

    async def delete_worker(self, worker_id: str) -> None:
        await self._client.beta.assistants.delete(worker_id)

    async def create_thread(self) -> str:
        thread = await self._client.beta.threads.create()
        return thread.id

    async def delete_thread(self, thread_id: str) -> None:
        await self._client.beta.threads.delete(thread_id)

    async def send(self, thread_id: str, worker_id: str, text: str) -> AsyncIterator[RemoteReply]:
        await self._client.beta.threads.messages.create(thread_id, role="user", content=text)
        stream = await self._client.beta.threads.runs.create(thread_id, assistant_id=worker_id, stream=True)
        run_id: str | None = None
        finished = False
        try:
            async for event in stream:
                kind = getattr(event, "event", None)
                if kind == "thread.run.created":
                    run_id = event.data.id
                elif kind in TERMINAL_RUN_EVENTS:
                    finished = True
                reply = _reply_from_event(event)
                if reply is not None:
                    yield reply
        finally:
            await stream.close()
            if run_id is not None and not finished:
                await self._cancel_run(thread_id, run_id)

    async def _cancel_run(self, thread_id: str, run_id: str) -> None:
        # A run left active blocks new messages on the thread.
        try:
            async with asyncio.timeout(RUN_CANCEL_TIMEOUT_SECONDS):
                await self._client.beta.threads.runs.cancel(run_id, thread_id=thread_id)
        except Exception as exc:
            logger.opt(exception=exc).warning("remote.run.cancel_failed run={} error={!s}", run_id, exc)
        else:
            logger.info("remote.run.cancelled run={}", run_id)


def _reply_from_event(event: Any) -> RemoteReply | None:
    kind = getattr(event, "event", None)
    data = getattr(event, "data", None)
    if kind == "error":
        raise RemoteError(getattr(data, "message", None) or "stream error", kind="stream")
    if kind in FAILED_RUN_EVENTS:
        last_error = getattr(data, "last_error", None)
        message = getattr(last_error, "message", None) or kind.rsplit(".", 1)[-1]
        raise RemoteError(f"run {getattr(data, 'id', '?')}: {message}", kind=kind)
    if kind == "thread.message.completed":
        return _message_reply(data)
    if kind == "thread.run.step.completed":
        return _tool_reply(data)
    logger.trace("remote.event.ignored kind={}", kind)
    return None


def _message_reply(message: Any) -> RemoteReply:
    texts: list[str] = []
    attachments: list[str] = []
    for block in message.content or []:
        if block.type == "text":
            texts.append(block.text.value)
            attachments.extend(
                annotation.file_path.file_id
                for annotation in block.text.annotations or []
                if annotation.type == "file_path"
            )
        elif block.type == "image_file":
            attachments.append(block.image_file.file_id)
    return RemoteReply(
        role=_ROLES.get(message.role, TurnRole.SYSTEM),
        text="\n".join(texts) or None,
        attachment_ids=tuple(attachments),
    )


def _tool_reply(step: Any) -> RemoteReply | None:
    details = step.step_details
    if details.type != "tool_calls":
        return None
    texts: list[str] = []
    attachments: list[str] = []
    for call in details.tool_calls:
        if call.type != "code_interpreter":
            continue
        if call.code_interpreter.input:
            texts.append(call.code_interpreter.input)
        for output in call.code_interpreter.outputs or []:
            if output.type == "logs" and output.logs:
                texts.append(output.logs)
            elif output.type == "image":
                attachments.append(output.image.file_id)
    if not texts and not attachments:
        return None
    return RemoteReply(role=TurnRole.TOOL, text="\n".join(texts) or None, attachment_ids=tuple(attachments))


def build_remote(settings: Settings) -> RemoteServices:
    """Build the remote services configured for Sift."""

    api_key = settings.api_key or os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ApiKeyNotConfiguredError("API key not configured. Set SIFT_API_KEY or OPENAI_API_KEY.")
    client = AsyncOpenAI(api_key=api_key, base_url=settings.api_base)
    return RemoteServices.from_backend(OpenAIAssistantsBackend(client))
