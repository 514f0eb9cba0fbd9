# orchestration/performance_orchestrator.py
"""Five-act performance loop: fetch, setup, guess, reveal, transition."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from config import settings
from core.exceptions import ContentPolicyError, TransportError
from core.joke_source import JokeSource
from core.llm_interface import JokeRater, PunchlinePredictor
from models import AnalysisResult, EffectKind, Joke, PerformanceState
from orchestration.analysis_service import AnalysisService
from orchestration.effects import EffectDispatcher, EffectPlayer, Narrator
from orchestration.fetch_coordinator import FetchRetryCoordinator
from orchestration.models import PerformanceSession, PerformanceTimings
from storage.performance_store import PerformanceStore

logger = structlog.get_logger(__name__)

StateListener = Callable[[], None]

DEFAULT_SPEECHLESS_MESSAGE = "The Court's content policy has silenced this jest."
SPEECHLESS_MESSAGE = "This jest was deemed too bold for the royal court!"
DEFAULT_NETWORK_STATUS = "Searching for a path to the server..."
NETWORK_LOST_STATUS = "The courier was lost on the road..."


class PerformanceOrchestrator:
    """Drive the joke performance loop for one session.

    A single asyncio task owns all mutable state. Listeners are called
    synchronously after every change and must not block. ``stop()`` is
    cooperative: the loop notices the stop event at the top of each act
    and inside every wait.
    """

    def __init__(
        self,
        source: JokeSource,
        predictor: PunchlinePredictor,
        rater: JokeRater | None = None,
        store: PerformanceStore | None = None,
        narrator: Narrator | None = None,
        effects: EffectPlayer | None = None,
        session: PerformanceSession | None = None,
        timings: PerformanceTimings | None = None,
        safe_mode: bool = settings.SAFE_MODE,
        audio_enabled: bool = settings.AUDIO_ENABLED,
        max_fetch_retries: int = settings.FETCH_MAX_RETRIES,
    ) -> None:
        self.fetcher = FetchRetryCoordinator(source, max_fetch_retries)
        self.analysis_service = AnalysisService(predictor, rater, store)
        self.narrator = narrator
        self.effects = effects
        self.session = session or PerformanceSession()
        self.timings = timings or PerformanceTimings.from_settings()
        self.safe_mode = safe_mode
        self.audio_enabled = audio_enabled

        self.current_joke: Joke | None = None
        self.current_analysis: AnalysisResult | None = None

        self.speechless = False
        self.speechless_message = DEFAULT_SPEECHLESS_MESSAGE
        self.network_awaiting = False
        self.network_status_text = DEFAULT_NETWORK_STATUS
        self.is_retrying = False
        self.retry_count = 0

        self._running = False
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._speechless_cleared = asyncio.Event()
        self._network_cleared = asyncio.Event()
        self._listeners: list[StateListener] = []
        self._dispatcher = EffectDispatcher()

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> PerformanceState:
        return self.session.state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def triumphs(self) -> int:
        return self.session.triumphs

    @property
    def defeats(self) -> int:
        return self.session.defeats

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Task | None:
        """Launch the loop as a background task; a no-op while already running.

        Returns the loop task, or ``None`` when the loop is already being
        driven by ``run()`` in another task.
        """
        if self._running or (self._task is not None and not self._task.done()):
            logger.info("Performance already running; start ignored.")
            return self._task
        self._begin()
        self._task = asyncio.create_task(self._run_loop())
        return self._task

    async def run(self) -> None:
        """Run the loop in the current task until stopped."""
        if self._running:
            logger.info("Performance already running; run ignored.")
            return
        self._begin()
        await self._run_loop()

    async def stop(self) -> None:
        """Stop the loop, force Idle and wait for the loop to wind down.

        An act blocked on an in-flight prediction gets ``timings.stop_grace``
        seconds to notice the stop before the loop task is cancelled.
        """
        was_running = self._running
        self._running = False
        self._stop_event.set()
        self.session.state = PerformanceState.IDLE
        if self.narrator is not None:
            try:
                await self.narrator.stop()
            except Exception as exc:
                logger.warning("Could not halt narration", error=str(exc))
        await self._dispatcher.cancel_all()
        if was_running:
            self._broadcast()

        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            await self._wind_down(task)
        self._task = None
        logger.info("Performance stopped.", session_id=self.session_id)

    async def _wind_down(self, task: asyncio.Task) -> None:
        grace = self.timings.stop_grace
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=grace)
        except asyncio.TimeoutError:
            logger.warning(
                "Performance loop did not stop in time; cancelling.",
                grace_seconds=grace,
            )
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def resume_speechless(self) -> None:
        """Dismiss the speechless overlay; the loop moves on to the next joke."""
        self.speechless = False
        self._speechless_cleared.set()
        self._notify()

    async def retry_network(self) -> None:
        """Dismiss the network overlay after a short retry flourish."""
        self.is_retrying = True
        self.retry_count += 1
        self._notify()

        await asyncio.sleep(self.timings.network_retry_delay)

        self.is_retrying = False
        self.network_awaiting = False
        self._network_cleared.set()
        self._notify()

    def reset_session(self) -> None:
        if self._running:
            raise RuntimeError("Cannot reset the session while a performance is running.")
        self.session.reset()
        self.current_joke = None
        self.current_analysis = None
        self._broadcast()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        self._running = True
        self._stop_event.clear()
        self.speechless = False
        self.network_awaiting = False
        self.is_retrying = False
        logger.info(
            "Performance starting.",
            session_id=self.session_id,
            safe_mode=self.safe_mode,
            audio_enabled=self.audio_enabled,
        )

    def _should_continue(self) -> bool:
        return self._running and not self._stop_event.is_set()

    async def _run_loop(self) -> None:
        try:
            while self._should_continue():
                try:
                    await self._perform_cycle()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error(
                        "Performance cycle failed; backing off.",
                        error=str(exc),
                        backoff_seconds=self.timings.error_backoff,
                        exc_info=True,
                    )
                    await self._pause(self.timings.error_backoff)
        finally:
            self._running = False

    async def _perform_cycle(self) -> None:
        joke = await self._fetch_act()
        if joke is None:
            return
        if not await self._setup_act(joke):
            return
        analysis = await self._guess_act(joke)
        if analysis is None:
            return
        if not await self._reveal_act(analysis):
            return
        await self._transition_act()

    # Act 1
    async def _fetch_act(self) -> Joke | None:
        if not self._enter(PerformanceState.FETCHING):
            return None
        while self._should_continue():
            try:
                joke = await self.fetcher.fetch(
                    self.safe_mode, self.session.exclusion_ids()
                )
            except TransportError as exc:
                logger.warning("Joke source unreachable.", error=str(exc))
                await self._await_network()
                continue
            if not self._should_continue():
                return None
            self.session.record_joke(joke.id)
            self.current_joke = joke
            self.current_analysis = None
            self._notify()
            return joke
        return None

    # Act 2
    async def _setup_act(self, joke: Joke) -> bool:
        if not self._enter(PerformanceState.SHOWING_SETUP):
            return False
        self._narrate(
            joke.display_text, settings.SETUP_SPEECH_RATE, settings.SETUP_SPEECH_PITCH
        )
        return await self._pause(self.timings.setup_dwell)

    # Act 3
    async def _guess_act(self, joke: Joke) -> AnalysisResult | None:
        if not self._enter(PerformanceState.SHOWING_AI_GUESS):
            return None
        self._play(EffectKind.DRUMROLL, self.timings.drumroll, 0.4)
        decorative_delay = self.timings.drumroll if self.audio_enabled else 0.0
        try:
            analysis, _ = await asyncio.gather(
                self.analysis_service.analyze(
                    joke, self.session_id, self.session.performances + 1
                ),
                self._pause(decorative_delay),
            )
        except ContentPolicyError as exc:
            logger.warning(
                "Jester silenced by content policy.",
                joke_id=joke.id,
                category=exc.category,
                reason=str(exc),
            )
            await self._await_speechless()
            return None

        if not self._should_continue():
            return None
        self.current_analysis = analysis
        self._notify()
        self._narrate(
            f"The Jester guesses: {analysis.predicted_punchline}",
            settings.GUESS_SPEECH_RATE,
            settings.DEFAULT_SPEECH_PITCH,
        )
        if not await self._pause(self.timings.guess_hold):
            return None
        return analysis

    # Act 4
    async def _reveal_act(self, analysis: AnalysisResult) -> bool:
        if not self._enter(PerformanceState.REVEALING_PUNCHLINE):
            return False
        triumph = analysis.is_triumph
        self.session.record_outcome(triumph)
        self._notify()
        logger.info(
            "Punchline revealed.",
            joke_id=analysis.joke.id,
            triumph=triumph,
            triumphs=self.session.triumphs,
            defeats=self.session.defeats,
        )
        self._play(EffectKind.FANFARE if triumph else EffectKind.TROMBONE, None, 0.5)

        answer = analysis.joke.answer_text
        if self.audio_enabled and self.narrator is not None and answer:
            if not await self._pause(self.timings.punchline_narration_delay):
                return False
            self._narrate(
                f"The actual punchline is: {answer}",
                settings.PUNCHLINE_SPEECH_RATE,
                settings.DEFAULT_SPEECH_PITCH,
            )
        return await self._pause(self.timings.reveal_dwell)

    # Act 5
    async def _transition_act(self) -> bool:
        if not self._enter(PerformanceState.TRANSITIONING):
            return False
        return await self._pause(self.timings.transition_pause)

    # ------------------------------------------------------------------
    # Overlays and waits
    # ------------------------------------------------------------------

    async def _await_network(self) -> None:
        self.network_status_text = NETWORK_LOST_STATUS
        self.network_awaiting = True
        self._network_cleared.clear()
        self._notify()

        auto_retry = self.timings.network_auto_retry
        if auto_retry is None:
            await self._wait_until(self._network_cleared)
            return
        try:
            await asyncio.wait_for(
                self._wait_until(self._network_cleared), timeout=auto_retry
            )
        except asyncio.TimeoutError:
            if self._should_continue():
                await self.retry_network()

    async def _await_speechless(self) -> None:
        self.speechless_message = SPEECHLESS_MESSAGE
        self.speechless = True
        self._speechless_cleared.clear()
        self._notify()
        await self._wait_until(self._speechless_cleared)

    async def _wait_until(self, cleared: asyncio.Event) -> None:
        """Block until ``cleared`` is set or the performance is stopped."""
        cleared_wait = asyncio.ensure_future(cleared.wait())
        stop_wait = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait(
                {cleared_wait, stop_wait}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cleared_wait.cancel()
            stop_wait.cancel()

    async def _pause(self, seconds: float) -> bool:
        """Dwell for ``seconds`` unless stopped; report whether to carry on."""
        if seconds <= 0:
            await asyncio.sleep(0)
            return self._should_continue()
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
        return self._should_continue()

    # ------------------------------------------------------------------
    # Side effects and notifications
    # ------------------------------------------------------------------

    def _narrate(self, text: str, rate: float, pitch: float) -> None:
        if not self.audio_enabled or self.narrator is None or not text:
            return
        self._dispatcher.dispatch("narration", self.narrator.speak(text, rate, pitch))

    def _play(self, effect: EffectKind, duration: float | None, volume: float) -> None:
        if not self.audio_enabled or self.effects is None:
            return
        self._dispatcher.dispatch(effect.value, self.effects.play(effect, duration, volume))

    def _enter(self, state: PerformanceState) -> bool:
        if not self._should_continue():
            return False
        self.session.state = state
        logger.debug("Entering act", state=state.value, session_id=self.session_id)
        self._notify()
        return True

    def _notify(self) -> None:
        if self._running:
            self._broadcast()

    def _broadcast(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as exc:
                logger.warning("State listener failed", error=str(exc))
