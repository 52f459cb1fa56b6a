"""Contentflow Application - wires configuration, clients and the pipeline.

Initialization sequence:

1. Config loading
2. Logger setup
3. Error registry and factory
4. Tool client manager (authorizes and connects to the servers the
   pipeline uses)
5. Draft collaborator
6. Pipeline orchestrator
"""

import sys
from typing import TextIO

from contentflow_core.config import ConfigLoader, ContentflowConfig
from contentflow_core.errors import ErrorFactory, ErrorRegistry
from contentflow_core.logging import FlowLogger, LogConfig
from contentflow_core.mcp import ToolClientManager, ToolSchema
from contentflow_core.pipeline import (
    ContentGenerator,
    OpenAIContentGenerator,
    PipelineOrchestrator,
    PipelineResult,
)


def referenced_servers(config: ContentflowConfig) -> list[str]:
    """Names of the servers the pipeline calls, in first-use order."""
    names = [config.research.server, config.translation.primary.server]
    if config.translation.secondary is not None:
        names.append(config.translation.secondary.server)
    return list(dict.fromkeys(names))


class ContentflowApplication:
    """Contentflow application orchestrator."""

    def __init__(
        self,
        config_path: str | None = None,
        log_output: TextIO | None = None,
        config: ContentflowConfig | None = None,
        generator: ContentGenerator | None = None,
        manager: ToolClientManager | None = None,
        concurrent_connect: bool = False,
    ):
        """Initialize application.

        Args:
            config_path: Path to config file (optional)
            log_output: Output stream for logs (default: sys.stderr)
            config: Pre-built configuration, skips loading
            generator: Draft collaborator override
            manager: Tool client manager override
            concurrent_connect: Authorize servers concurrently
        """
        self._config_path = config_path
        self._log_output = log_output or sys.stderr
        self._concurrent_connect = concurrent_connect
        self._initialized = False

        # Components (initialized in initialize())
        self.config: ContentflowConfig | None = config
        self.logger: FlowLogger | None = None
        self.error_registry: ErrorRegistry | None = None
        self.error_factory: ErrorFactory | None = None
        self.manager: ToolClientManager | None = manager
        self.generator: ContentGenerator | None = generator
        self.orchestrator: PipelineOrchestrator | None = None

    async def initialize(self) -> None:
        """Initialize all components and authorize the servers."""
        if self._initialized:
            return

        # 1. Config
        if self.config is None:
            self.config = ConfigLoader().load(self._config_path)
        config = self.config

        # 2. Logger
        log_config = LogConfig(
            level=config.logging.level,
            format=config.logging.format,
            show_params=config.logging.options.show_params,
            show_results=config.logging.options.show_results,
            truncate_at=config.logging.options.truncate_at,
            components={
                "pipeline": config.logging.components.pipeline,
                "step": config.logging.components.step,
                "tool": config.logging.components.tool,
                "auth": config.logging.components.auth,
                "retry": config.logging.components.retry,
                "mcp": config.logging.components.mcp,
            },
            output=self._log_output,
        )
        self.logger = FlowLogger(log_config)

        # 3. Error Registry & Factory
        self.error_registry = ErrorRegistry()
        self.error_factory = ErrorFactory(self.error_registry)

        # 4. Tool clients, only for servers the pipeline uses
        if self.manager is None:
            servers = {name: config.servers[name] for name in referenced_servers(config)}
            self.manager = ToolClientManager(
                servers,
                auth_config=config.auth,
                logger=self.logger,
                error_factory=self.error_factory,
            )
        await self.manager.connect_all(concurrent=self._concurrent_connect)

        # 5. Draft collaborator
        if self.generator is None:
            self.generator = OpenAIContentGenerator(config.draft)

        # 6. Orchestrator
        self.orchestrator = PipelineOrchestrator(
            self.manager,
            self.generator,
            research_config=config.research,
            translation_config=config.translation,
            logger=self.logger,
        )

        self._initialized = True

    async def run(self, query: str, target_language: str | None = None) -> PipelineResult:
        """Run the pipeline once."""
        if not self._initialized:
            await self.initialize()
        assert self.orchestrator is not None
        return await self.orchestrator.execute(query, target_language)

    async def list_tools(self, server_name: str | None = None) -> dict[str, list[ToolSchema]]:
        """List tools of the connected servers."""
        if not self._initialized:
            await self.initialize()
        assert self.manager is not None
        return await self.manager.list_tools(server_name)

    async def shutdown(self) -> None:
        """Close all clients."""
        if self.manager:
            await self.manager.close_all()
        self._initialized = False

    async def __aenter__(self) -> "ContentflowApplication":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()
