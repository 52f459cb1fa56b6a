"""Pipeline orchestrator - research, draft, translate.

Each step turns its own failures into a StepResult. A failed research or
draft step halts the run; translation failures never do, they degrade to
the secondary provider and finally to the untranslated text.
"""

import time
import uuid
from typing import Any

from contentflow_core.config.models import ResearchConfig, TranslationConfig, TranslationProvider
from contentflow_core.errors import classify_error
from contentflow_core.logging import FlowLogger, PipelineLogger, StepLogger
from contentflow_core.mcp.types import ToolResult, extract_text
from contentflow_core.retry import RetryPolicy
from contentflow_core.types import PipelineState, StepName

from .drafting import NO_RESEARCH_DATA, ContentGenerator
from .types import PipelineResult, StepResult, ToolCaller


def _message(error: BaseException) -> str:
    return str(error) or type(error).__name__


def _payload(result: Any) -> Any:
    if isinstance(result, ToolResult):
        return result.to_dict()
    return result


class PipelineOrchestrator:
    """Runs research → draft → translate over authorized tool clients."""

    def __init__(
        self,
        tools: ToolCaller,
        generator: ContentGenerator,
        research_config: ResearchConfig | None = None,
        translation_config: TranslationConfig | None = None,
        logger: FlowLogger | None = None,
    ):
        """Initialize orchestrator.

        Args:
            tools: Tool caller (usually a ToolClientManager)
            generator: Draft collaborator
            research_config: Research tool and retry settings
            translation_config: Translation providers and default language
            logger: Optional logger
        """
        self._tools = tools
        self._generator = generator
        self.research_config = research_config or ResearchConfig()
        self.translation_config = translation_config or TranslationConfig()
        self._logger = logger
        self.state = PipelineState.IDLE

    async def execute(self, query: str, target_language: str | None = None) -> PipelineResult:
        """Run the whole pipeline.

        Args:
            query: Research query
            target_language: Translation target (defaults to the configured language)

        Returns:
            PipelineResult; never raises for step or workflow failures
        """
        language = target_language or self.translation_config.default_target_language
        run_id = uuid.uuid4().hex[:12]
        log = self._logger.pipeline(query, run_id) if self._logger else None
        start_time = time.time()
        steps: list[StepResult] = []

        if log:
            log.started(language)

        try:
            self.state = PipelineState.RESEARCHING
            research = await self.research(query, log)
            steps.append(research)
            if not research.success:
                return self._halt(research, steps, log, start_time)

            self.state = PipelineState.DRAFTING
            draft = await self.draft(research.data, log)
            steps.append(draft)
            if not draft.success:
                return self._halt(draft, steps, log, start_time)

            self.state = PipelineState.TRANSLATING
            translation = await self.translate(draft.data, language, log)
            steps.append(translation)
        except Exception as e:
            error = StepResult.failed(StepName.WORKFLOW, _message(e))
            return self._halt(error, steps, log, start_time)

        self.state = PipelineState.DONE
        duration_ms = int((time.time() - start_time) * 1000)
        if log:
            log.completed(duration_ms, len(steps))

        return PipelineResult(
            success=True,
            step=StepName.WORKFLOW,
            steps=steps,
            data={
                "query": query,
                "target_language": language,
                "research": research.data,
                "draft": draft.data,
                "translation": translation.data,
                "workflow_status": "complete",
            },
            state=self.state,
            duration_ms=duration_ms,
        )

    def _halt(
        self,
        failure: StepResult,
        steps: list[StepResult],
        log: PipelineLogger | None,
        start_time: float,
    ) -> PipelineResult:
        self.state = PipelineState.FAILED
        duration_ms = int((time.time() - start_time) * 1000)
        if log:
            log.failed(failure.step.value, failure.error or "", duration_ms)
        return PipelineResult(
            success=False,
            step=failure.step,
            steps=steps,
            error=failure.error,
            metadata=failure.metadata,
            state=self.state,
            duration_ms=duration_ms,
        )

    async def research(self, query: str, log: PipelineLogger | None = None) -> StepResult:
        """Search for the query, retrying with exponential backoff.

        A terminal failure is classified as transient or permanent and
        returned in the step metadata.
        """
        config = self.research_config
        step_log = log.step(StepName.RESEARCH.value) if log else None
        arguments = {"query": query, "num_results": config.num_results}

        def on_retry(attempt: int, max_attempts: int, delay: float, error: Exception) -> None:
            if step_log:
                step_log.retrying(attempt, max_attempts, delay)

        policy = RetryPolicy(config.retry, on_retry=on_retry)
        start_time = time.time()
        if step_log:
            step_log.started(config.tool)

        try:
            result = await policy.run(
                lambda: self._call(step_log, config.server, config.tool, arguments)
            )
        except Exception as e:
            metadata = classify_error(e).to_metadata()
            if step_log:
                step_log.failed(e, metadata)
            return StepResult.failed(StepName.RESEARCH, _message(e), metadata)

        if step_log:
            step_log.completed(int((time.time() - start_time) * 1000))
        return StepResult.ok(StepName.RESEARCH, _payload(result))

    async def draft(self, research_data: Any, log: PipelineLogger | None = None) -> StepResult:
        """Generate the article from the research payload's text content."""
        step_log = log.step(StepName.DRAFT.value) if log else None
        summary = extract_text(research_data)
        if not summary.strip():
            summary = NO_RESEARCH_DATA

        start_time = time.time()
        if step_log:
            step_log.started()
        try:
            article = await self._generator.generate(summary)
        except Exception as e:
            if step_log:
                step_log.failed(e)
            return StepResult.failed(StepName.DRAFT, _message(e))

        if step_log:
            step_log.completed(int((time.time() - start_time) * 1000))
        return StepResult.ok(StepName.DRAFT, article)

    async def translate(
        self, text: str, target_language: str, log: PipelineLogger | None = None
    ) -> StepResult:
        """Translate with the primary provider, then the secondary, then not at all."""
        step_log = log.step(StepName.TRANSLATE.value) if log else None
        providers = [self.translation_config.primary]
        if self.translation_config.secondary is not None:
            providers.append(self.translation_config.secondary)

        start_time = time.time()
        if step_log:
            step_log.started(providers[0].tool)

        primary_error: Exception | None = None
        last_error: Exception | None = None
        for index, provider in enumerate(providers):
            try:
                result = await self._translate_with(step_log, provider, text, target_language)
            except Exception as e:
                last_error = e
                if primary_error is None:
                    primary_error = e
                if step_log and index + 1 < len(providers):
                    step_log.fallback(f"'{providers[index + 1].server}'", _message(e))
                continue

            data = _payload(result)
            if not isinstance(data, dict):
                data = {"content": data}
            if index > 0 and primary_error is not None:
                data = {
                    **data,
                    "fallback_used": provider.server,
                    "primary_error": _message(primary_error),
                }
            if step_log:
                step_log.completed(int((time.time() - start_time) * 1000))
            return StepResult.ok(StepName.TRANSLATE, data)

        error = _message(last_error) if last_error else "Translation failed"
        if step_log:
            step_log.fallback("untranslated text", error)
        return StepResult(
            step=StepName.TRANSLATE,
            success=True,
            data={
                "original_text": text,
                "translated_text": text,
                "fallback_applied": True,
                "target_language": target_language,
            },
            error=error,
            metadata={"fallback_applied": True},
        )

    async def _translate_with(
        self,
        step_log: StepLogger | None,
        provider: TranslationProvider,
        text: str,
        target_language: str,
    ) -> Any:
        arguments = {provider.text_arg: text, provider.language_arg: target_language}
        return await self._call(step_log, provider.server, provider.tool, arguments)

    async def _call(
        self,
        step_log: StepLogger | None,
        server_name: str,
        tool_name: str,
        arguments: dict[str, Any],
    ) -> Any:
        tool_log = step_log.tool() if step_log else None
        if tool_log:
            tool_log.calling(tool_name, server_name, arguments)

        start_time = time.time()
        try:
            result = await self._tools.call_tool(server_name, tool_name, arguments)
        except Exception as e:
            if tool_log:
                tool_log.error(tool_name, _message(e), int((time.time() - start_time) * 1000))
            raise

        if tool_log:
            tool_log.result(tool_name, _payload(result), int((time.time() - start_time) * 1000))
        return result
