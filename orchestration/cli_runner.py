# orchestration/cli_runner.py
"""Command-line runner for the performance orchestrator."""

from __future__ import annotations

import asyncio

import structlog

from config import settings
from core.joke_source import JokeApiClient
from core.llm_interface import OpenAIJester
from core.mock_jester import MockJester
from orchestration.effects import LogEffectPlayer, LogNarrator
from orchestration.performance_orchestrator import PerformanceOrchestrator
from storage.performance_store import JsonlPerformanceStore
from ui.rich_display import StageDisplayManager
from utils.logging import setup_logging

logger = structlog.get_logger(__name__)


async def _run(
    use_mock: bool, safe_mode: bool, audio_enabled: bool, store_path: str | None
) -> None:
    source = JokeApiClient()
    jester: OpenAIJester | MockJester = MockJester() if use_mock else OpenAIJester()
    store = (
        JsonlPerformanceStore(store_path)
        if store_path or settings.ENABLE_PERFORMANCE_STORE
        else None
    )
    orchestrator = PerformanceOrchestrator(
        source,
        jester,
        rater=jester,
        store=store,
        narrator=LogNarrator(),
        effects=LogEffectPlayer(),
        safe_mode=safe_mode,
        audio_enabled=audio_enabled,
    )
    display = StageDisplayManager(orchestrator)
    display.start()
    try:
        await orchestrator.run()
    finally:
        await orchestrator.stop()
        display.stop()
        await source.aclose()
        if isinstance(jester, OpenAIJester):
            await jester.aclose()
        if store is not None:
            stats = await store.session_stats(orchestrator.session_id)
            if stats is not None:
                logger.info(
                    "Session summary",
                    session_id=stats.session_id,
                    jokes=stats.total_jokes,
                    triumphs=stats.triumphs,
                    triumph_rate=stats.triumph_rate,
                )


def run(
    use_mock: bool = settings.USE_MOCK_JESTER,
    safe_mode: bool = settings.SAFE_MODE,
    audio_enabled: bool = settings.AUDIO_ENABLED,
    store_path: str | None = None,
) -> None:
    """Configure logging and perform jokes until interrupted."""
    setup_logging()
    try:
        asyncio.run(_run(use_mock, safe_mode, audio_enabled, store_path))
    except KeyboardInterrupt:
        logger.info("Jester leaving the stage due to KeyboardInterrupt...")
    except Exception as main_err:  # pragma: no cover - entry point catch
        logger.critical(
            "Jester encountered an unhandled main exception: %s",
            main_err,
            exc_info=True,
        )
