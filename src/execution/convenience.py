"""Convenience functions for common pipeline setups."""

from __future__ import annotations

from src.execution.config import RunConfig
from src.execution.service import PlanningService
from src.generation.protocol import TextGenerator
from src.generation.retry import RetryingGenerator
from src.workflow.models import RunSession


def create_generator(config: RunConfig | None = None, mock: bool = False) -> TextGenerator:
    """Create a retrying generator backed by Claude, or by canned responses."""
    config = config or RunConfig()
    if mock:
        from src.generation.mocks import MockTextGenerator

        inner = MockTextGenerator()
    else:
        from src.generation.claude_code import ClaudeTextGenerator

        inner = ClaudeTextGenerator(
            model=config.model, timeout=config.generation_timeout_seconds,
        )
    return RetryingGenerator(inner, config.retry_policy())


def create_service(config: RunConfig | None = None, mock: bool = False) -> PlanningService:
    config = config or RunConfig()
    return PlanningService(create_generator(config, mock=mock), config=config)


async def run_pipeline(
    stage1_run_id: str,
    stage2_run_id: str,
    config: RunConfig | None = None,
    mock: bool = False,
) -> RunSession:
    """Create a run and wait for it to finish.

    Example::

        session = await run_pipeline("2026-10-01_09-00-00", "2026-10-01_09-30-00", mock=True)
        print(session.status, session.output_dir)
    """
    service = create_service(config, mock=mock)
    run_id = await service.create_run(stage1_run_id, stage2_run_id)
    return await service.wait_for(run_id)
