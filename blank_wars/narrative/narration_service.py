"""
Time-boxed flavor text for the Blank Wars battle engine.

A round's in-character line is requested from the DialogueGenerator on a
worker thread as soon as the round is committed, then collected when the
narration step fires. If the generator raised, returned nothing, or missed
its deadline, the procedural line is used and the result is marked degraded.

Workers are daemon threads: a provider call that hangs past its deadline is
abandoned and never keeps the process alive.
"""

from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Optional
import logging
import threading
import time

from blank_wars.ai.dialogue_generator import DialogueGenerator, FlavorContext
from blank_wars.narrative.fallback_narration import FallbackNarrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NarrationResult:
    """Where a round's flavor line came from."""
    text: str
    source: str  # "dialogue" or "fallback"
    degraded: bool
    detail: str = ""


@dataclass
class PendingNarration:
    """A flavor-line request in flight."""
    context: FlavorContext
    future: Optional[Future]
    deadline: float


class NarrationService:
    """
    Runs dialogue generation off the engine's path.

    The engine never reads battle state from here; it only receives text.
    """

    def __init__(
        self,
        generator: Optional[DialogueGenerator] = None,
        timeout_seconds: float = 2.0,
        narrator: Optional[FallbackNarrator] = None,
    ):
        """
        Args:
            generator: Dialogue source, or None for procedural lines only
            timeout_seconds: Wall-clock budget per line, measured from the request
            narrator: Procedural fallback
        """
        self.generator = generator
        self.timeout_seconds = timeout_seconds
        self.narrator = narrator or FallbackNarrator()
        self._in_flight: set[Future] = set()

    def _generate(self, future: Future, context: FlavorContext) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            line = self.generator.generate_line(context)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(line)

    @property
    def in_flight(self) -> int:
        """Requests whose worker has not finished."""
        return sum(1 for f in list(self._in_flight) if not f.done())

    def request(self, context: FlavorContext) -> PendingNarration:
        """Start generating a line. Returns immediately."""
        future = None
        if self.generator is not None:
            future = Future()
            self._in_flight.add(future)
            future.add_done_callback(self._in_flight.discard)
            threading.Thread(
                target=self._generate,
                args=(future, context),
                name=f"dialogue-round-{context.round_number}",
                daemon=True,
            ).start()
        return PendingNarration(
            context=context,
            future=future,
            deadline=time.monotonic() + self.timeout_seconds,
        )

    def resolve(self, pending: PendingNarration) -> NarrationResult:
        """
        Collect a requested line, waiting at most until its deadline.

        Never raises: every failure becomes a degraded fallback result.
        """
        fallback = self.narrator.character_line(pending.context)
        if pending.future is None:
            return NarrationResult(text=fallback, source="fallback", degraded=False)

        remaining = max(0.0, pending.deadline - time.monotonic())
        try:
            line = pending.future.result(timeout=remaining)
        except FutureTimeoutError:
            pending.future.cancel()
            logger.warning(
                f"Dialogue for round {pending.context.round_number} timed out; using fallback"
            )
            return NarrationResult(text=fallback, source="fallback", degraded=True, detail="timeout")
        except Exception as e:
            logger.warning(
                f"Dialogue for round {pending.context.round_number} failed ({e}); using fallback"
            )
            return NarrationResult(text=fallback, source="fallback", degraded=True, detail=str(e))

        if not isinstance(line, str) or not line.strip():
            logger.warning(f"Dialogue for round {pending.context.round_number} was empty")
            return NarrationResult(text=fallback, source="fallback", degraded=True, detail="empty")

        return NarrationResult(text=line.strip(), source="dialogue", degraded=False)

    def shutdown(self) -> None:
        """Abandon in-flight lines without waiting for them."""
        for future in list(self._in_flight):
            future.cancel()
        self._in_flight.clear()
