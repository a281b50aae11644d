"""Adapter for the narrative generation collaborator.

The engine hands resolution summaries and victory payloads to an external
narrator (usually an LLM service). The narrator is anything implementing
``NarrativeClient``. Retry and timeout policy for those calls lives here,
in the adapter, and not in the rules engine: transient failures are
retried with exponential backoff, and once the attempts are used up the
caller gets a NarrativeUnavailableError marked retryable.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Protocol

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from rpg_engine.core.exceptions import (
    CollaboratorConnectionError,
    NarrativeUnavailableError,
)
from rpg_engine.core.logging import get_logger


if TYPE_CHECKING:
    from rpg_engine.models.combat import ResolutionBundle, VictoryData

logger = get_logger(__name__)

COLLABORATOR_NAME = "narrative"


class NarrativeClient(Protocol):
    """A service that turns a prompt into narration."""

    async def generate(self, prompt: str) -> str:
        """Generate narration for a prompt.

        Raises:
            CollaboratorConnectionError: On transient failures worth retrying.
        """
        ...


def build_resolution_prompt(bundle: ResolutionBundle, *, scene: str | None = None) -> str:
    """Build the narration prompt for one resolved action.

    Example:
        >>> from rpg_engine.models.combat import ResolutionBundle
        >>> build_resolution_prompt(ResolutionBundle(summary="Goblin attacks Ayla: Miss"))
        'Narrate the following combat results.\\n\\nGoblin attacks Ayla: Miss'
    """
    parts = ["Narrate the following combat results."]
    if scene:
        parts.append(f"Scene: {scene}")
    parts.append(bundle.summary or "Nothing happened.")
    return "\n\n".join(parts)


def build_victory_prompt(victory: VictoryData) -> str:
    """Build the prompt announcing a won encounter."""
    names = ", ".join(actor.name for actor in victory.defeated) or "the enemy"
    return (
        "Narrate the end of the battle. "
        f"Defeated: {names}. Experience earned: {victory.total_xp} XP."
    )


class NarrativeGateway:
    """Retrying adapter in front of a NarrativeClient.

    Example:
        >>> gateway = NarrativeGateway(client, max_retries=3)  # doctest: +SKIP
        >>> text = await gateway.narrate_resolution(bundle)  # doctest: +SKIP
    """

    def __init__(
        self,
        client: NarrativeClient,
        *,
        max_retries: int | None = None,
        timeout_seconds: float | None = None,
        wait: Any | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            client: The narrator to call.
            max_retries: Attempts before giving up. Defaults to the
                ``narrative.max_retries`` setting.
            timeout_seconds: Per-attempt timeout. Defaults to the
                ``narrative.timeout_seconds`` setting.
            wait: tenacity wait strategy; exponential backoff by default.
        """
        if max_retries is None or timeout_seconds is None:
            from rpg_engine.core.config import get_settings

            narrative = get_settings().narrative
            max_retries = narrative.max_retries if max_retries is None else max_retries
            timeout_seconds = (
                narrative.timeout_seconds if timeout_seconds is None else timeout_seconds
            )

        self.client = client
        self.max_retries = max(1, max_retries)
        self.timeout_seconds = timeout_seconds
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)

        logger.info(
            "NarrativeGateway initialized",
            max_retries=self.max_retries,
            timeout_seconds=self.timeout_seconds,
        )

    async def generate(self, prompt: str) -> str:
        """Call the narrator, retrying transient failures.

        Args:
            prompt: Prompt text.

        Returns:
            Narration text.

        Raises:
            NarrativeUnavailableError: If every attempt failed.
        """
        @retry(
            retry=retry_if_exception_type((CollaboratorConnectionError, TimeoutError)),
            stop=stop_after_attempt(self.max_retries),
            wait=self._wait,
            reraise=True,
        )
        async def _call() -> str:
            try:
                return await asyncio.wait_for(
                    self.client.generate(prompt), timeout=self.timeout_seconds
                )
            except (CollaboratorConnectionError, TimeoutError) as exc:
                logger.warning("Narrative call failed, retrying", error=str(exc))
                raise

        try:
            text = await _call()
        except (CollaboratorConnectionError, TimeoutError) as exc:
            logger.error(
                "Narrative generation unavailable",
                attempts=self.max_retries,
                error=str(exc),
            )
            raise NarrativeUnavailableError(
                f"Narrative generation failed after {self.max_retries} attempts",
                collaborator=COLLABORATOR_NAME,
                retryable=True,
                details={"attempts": self.max_retries},
            ) from exc

        logger.debug("Narrative generated", response_length=len(text))
        return text

    async def narrate_resolution(
        self, bundle: ResolutionBundle, *, scene: str | None = None
    ) -> str:
        """Narrate one resolved action."""
        return await self.generate(build_resolution_prompt(bundle, scene=scene))

    async def narrate_victory(self, victory: VictoryData) -> str:
        """Narrate the end of an encounter."""
        return await self.generate(build_victory_prompt(victory))


__all__ = [
    "COLLABORATOR_NAME",
    "NarrativeClient",
    "NarrativeGateway",
    "build_resolution_prompt",
    "build_victory_prompt",
]
