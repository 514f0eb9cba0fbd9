from __future__ import annotations

import time
from typing import TYPE_CHECKING, Optional

from rich.console import Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from config import settings
from models import PerformanceState

if TYPE_CHECKING:  # pragma: no cover - type hint import
    from orchestration.performance_orchestrator import PerformanceOrchestrator


class StageDisplayManager:
    """Render the orchestrator's public state as a Rich live panel."""

    def __init__(self, orchestrator: PerformanceOrchestrator) -> None:
        self.orchestrator = orchestrator
        self.live: Optional[Live] = None
        self.status_text_session: Text = Text("Session: N/A")
        self.status_text_state: Text = Text("Act: Idle")
        self.status_text_setup: Text = Text("Setup: ...")
        self.status_text_guess: Text = Text("Jester guesses: ...")
        self.status_text_outcome: Text = Text("")
        self.status_text_score: Text = Text("Triumphs: 0  Defeats: 0")
        self.status_text_overlay: Text = Text("")
        self.status_text_elapsed_time: Text = Text("Elapsed Time: 0s")
        self.run_start_time: float = 0.0
        self.group = Group(
            self.status_text_session,
            self.status_text_state,
            self.status_text_setup,
            self.status_text_guess,
            self.status_text_outcome,
            self.status_text_score,
            self.status_text_overlay,
            self.status_text_elapsed_time,
        )

        if settings.ENABLE_RICH_PROGRESS:
            self.live = Live(
                Panel(
                    self.group,
                    title="The Digital Jester",
                    border_style="magenta",
                    expand=True,
                ),
                refresh_per_second=4,
                transient=False,
                redirect_stdout=False,
                redirect_stderr=False,
            )

    def start(self) -> None:
        self.run_start_time = time.time()
        self.orchestrator.add_listener(self.update)
        if self.live:
            self.live.start()
        self.update()

    def stop(self) -> None:
        self.orchestrator.remove_listener(self.update)
        if self.live and self.live.is_started:
            self.live.stop()

    def update(self) -> None:
        orch = self.orchestrator
        self.status_text_session.plain = f"Session: {orch.session_id}"
        self.status_text_state.plain = f"Act: {orch.state.value}"

        joke = orch.current_joke
        self.status_text_setup.plain = (
            f"[{joke.category}] {joke.display_text}" if joke else "Setup: ..."
        )

        analysis = orch.current_analysis
        if analysis is None:
            self.status_text_guess.plain = "Jester guesses: ..."
            self.status_text_outcome.plain = ""
        else:
            self.status_text_guess.plain = (
                f"Jester guesses: {analysis.predicted_punchline} "
                f"(similarity {analysis.similarity:.0%})"
            )
            if orch.state in (
                PerformanceState.REVEALING_PUNCHLINE,
                PerformanceState.TRANSITIONING,
            ):
                verdict = "TRIUMPH!" if analysis.is_triumph else "Defeat..."
                self.status_text_outcome.plain = (
                    f"{verdict} The punchline: {analysis.joke.answer_text}"
                )

        self.status_text_score.plain = (
            f"Triumphs: {orch.triumphs}  Defeats: {orch.defeats}"
        )
        if orch.speechless:
            self.status_text_overlay.plain = f"SPEECHLESS: {orch.speechless_message}"
        elif orch.network_awaiting:
            retrying = " (retrying...)" if orch.is_retrying else ""
            self.status_text_overlay.plain = (
                f"NETWORK: {orch.network_status_text}{retrying}"
            )
        else:
            self.status_text_overlay.plain = ""

        if self.run_start_time:
            elapsed = int(time.time() - self.run_start_time)
            self.status_text_elapsed_time.plain = f"Elapsed Time: {elapsed}s"
