"""Resilient invocation of the remote analyst."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Sequence
from dataclasses import replace
from pathlib import Path

from loguru import logger

from sift.config import Settings, select_model
from sift.core.completion import CompletionDetector
from sift.core.deadline import Deadline
from sift.core.fallback import FallbackAnalyzer
from sift.core.prompt import DEFAULT_QUESTION, build_message, instructions_for
from sift.core.session import HandleState, SessionHandle, SessionLease, SessionSpec
from sift.core.transcript import Transcript
from sift.core.turn_stream import StopReason, StreamRead, TurnStreamReader, read_turns
from sift.remote.base import RemoteServices
from sift.types import AnalysisRequest, InvocationOutcome, InvocationStatus, Turn

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

ModelPolicy = Callable[[str, Settings], str]


def _describe(exc: BaseException | None) -> str:
    if exc is None:
        return "unknown error"
    return str(exc) or type(exc).__name__


class InvocationOrchestrator:
    """Drive one remote analysis session to an outcome.

    The orchestrator keeps no per-call state, so one instance can serve
    concurrent invocations.
    """

    def __init__(
        self,
        remote: RemoteServices,
        settings: Settings,
        *,
        detector: CompletionDetector | None = None,
        analyzer: FallbackAnalyzer | None = None,
        model_policy: ModelPolicy = select_model,
    ) -> None:
        self._remote = remote
        self._settings = settings
        self._detector = detector or CompletionDetector(settings.completion_markers)
        self._analyzer = analyzer or FallbackAnalyzer(settings.delimiter)
        self._model_policy = model_policy

    async def invoke(self, request: AnalysisRequest, deadline: Deadline | None = None) -> InvocationOutcome:
        """Answer one question.

        Raises ``AcquisitionError`` when the session cannot be allocated. Every
        other failure comes back as an outcome.
        """
        outcomes = await self._run(request, [request.question or DEFAULT_QUESTION], deadline)
        return outcomes[0]

    async def invoke_many(
        self,
        request: AnalysisRequest,
        questions: Sequence[str],
        deadline: Deadline | None = None,
    ) -> list[InvocationOutcome]:
        """Answer several questions in one session, sharing one deadline."""
        asked = [question for question in questions if question.strip()] or [DEFAULT_QUESTION]
        return await self._run(request, asked, deadline)

    async def _run(
        self,
        request: AnalysisRequest,
        questions: list[str],
        deadline: Deadline | None,
    ) -> list[InvocationOutcome]:
        deadline = deadline or Deadline.after(self._settings.deadline_seconds)
        model = self._model_policy(" ".join(questions), self._settings)
        spec = SessionSpec(
            model=model,
            instructions=instructions_for(request.file_name, inline=request.inline),
            data=None if request.inline else request.data,
            file_name=request.file_name,
        )
        lease = SessionLease(
            self._remote,
            spec,
            deadline=deadline,
            release_timeout_seconds=self._settings.release_timeout_seconds,
        )

        with logger.contextualize(invocation=uuid.uuid4().hex[:8]):
            logger.info(
                "invocation.start questions={} model={} inline={} deadline_s={:.1f}",
                len(questions),
                model,
                request.inline,
                deadline.remaining(),
            )
            outcomes: list[InvocationOutcome] = []
            async with lease as handle:
                for question in questions:
                    outcomes.append(await self._answer_safely(handle, request, question, deadline))

            finished = [
                replace(outcome, model=model, release_errors=lease.release_errors) for outcome in outcomes
            ]
            logger.info("invocation.finish statuses={}", ",".join(outcome.status for outcome in finished))
            return finished

    async def _answer_safely(
        self,
        handle: SessionHandle,
        request: AnalysisRequest,
        question: str,
        deadline: Deadline,
    ) -> InvocationOutcome:
        transcript = Transcript(question)
        if deadline.expired():
            logger.warning("invocation.question.skipped reason=deadline")
            transcript.add_note("Skipped: the deadline expired before this question was sent.")
            return InvocationOutcome(status=InvocationStatus.TIMED_OUT, assembled_text=transcript.render())
        try:
            return await self._answer(handle, request, question, deadline, transcript)
        except Exception as exc:
            logger.opt(exception=exc).error("invocation.unexpected_error error={!s}", exc)
            transcript.add_note(f"Error processing question: {_describe(exc)}")
            return InvocationOutcome(
                status=InvocationStatus.FAILED,
                assembled_text=transcript.render(),
                error=_describe(exc),
            )

    async def _answer(
        self,
        handle: SessionHandle,
        request: AnalysisRequest,
        question: str,
        deadline: Deadline,
        transcript: Transcript,
    ) -> InvocationOutcome:
        message = build_message(question, request.data, request.file_name, inline=request.inline)
        read = await self._read(handle, message, deadline)
        transcript.add_turns(read.turns)

        if read.stop is StopReason.ERROR:
            return self._degrade(transcript, read, request, question)

        attachments = await self._download(read.turns, deadline)
        if read.stop is StopReason.BUDGET:
            transcript.add_note(
                f"Analysis stopped: maximum turn count ({self._settings.max_turns}) reached, output may be incomplete."
            )
            status = InvocationStatus.TURN_BUDGET_EXCEEDED
        elif read.stop is StopReason.TIMEOUT:
            transcript.add_note(
                f"Analysis timed out after {deadline.budget_seconds:g} seconds, showing partial output. "
                "The dataset might be too complex or large."
            )
            status = InvocationStatus.TIMED_OUT
        else:
            status = InvocationStatus.COMPLETED

        return InvocationOutcome(
            status=status,
            assembled_text=transcript.render(),
            turns=read.turns,
            attachments=attachments,
        )

    async def _read(self, handle: SessionHandle, message: str, deadline: Deadline) -> StreamRead:
        if handle.state is not HandleState.ALLOCATED or handle.thread_id is None or handle.worker_id is None:
            raise RuntimeError(f"session handle is {handle.state}, cannot send")
        try:
            replies = self._remote.transport.send(handle.thread_id, handle.worker_id, message)
        except Exception as exc:
            logger.opt(exception=exc).error("turns.send.error error={!s}", exc)
            return StreamRead((), StopReason.ERROR, exc)

        reader = TurnStreamReader(replies)
        try:
            return await read_turns(
                reader,
                deadline=deadline,
                max_turns=self._settings.max_turns,
                detector=self._detector,
            )
        finally:
            await reader.aclose()

    def _degrade(
        self,
        transcript: Transcript,
        read: StreamRead,
        request: AnalysisRequest,
        question: str,
    ) -> InvocationOutcome:
        error = _describe(read.error)
        transcript.add_note(f"Error processing question '{question}': {error}")
        transcript.add_note("Attempting fallback analysis...")
        result = self._analyzer.analyze(request.data, question)
        if result.ok:
            transcript.add_note(result.text)
            status = InvocationStatus.DEGRADED
        else:
            logger.error("fallback.unavailable turns={}", len(read.turns))
            transcript.add_note(f"Fallback analysis failed:\n{result.text}")
            transcript.add_note(self._analyzer.basic_summary(request.data, question))
            status = InvocationStatus.FAILED

        return InvocationOutcome(
            status=status,
            assembled_text=transcript.render(),
            used_fallback=True,
            turns=read.turns,
            error=error,
        )

    async def _download(self, turns: tuple[Turn, ...], deadline: Deadline) -> tuple[Path, ...]:
        output_dir = self._settings.output_dir
        artifact_ids = list(dict.fromkeys(artifact_id for turn in turns for artifact_id in turn.attachment_ids))
        if output_dir is None or not artifact_ids:
            return ()

        saved: list[Path] = []
        for index, artifact_id in enumerate(artifact_ids):
            if deadline.expired():
                logger.warning("attachments.skipped remaining={}", len(artifact_ids) - index)
                break
            try:
                async with asyncio.timeout_at(deadline.when):
                    content = await self._remote.artifacts.download_artifact(artifact_id)
                suffix = ".png" if content.startswith(PNG_MAGIC) else ""
                path = output_dir / f"{artifact_id}{suffix}"
                output_dir.mkdir(parents=True, exist_ok=True)
                path.write_bytes(content)
            except Exception as exc:
                logger.opt(exception=exc).warning("attachments.save.error id={} error={!s}", artifact_id, exc)
                continue
            saved.append(path)
            logger.info("attachments.saved id={} path={}", artifact_id, path)
        return tuple(saved)
