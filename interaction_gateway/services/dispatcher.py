"""
Deferred Dispatcher

Runs a handler either inline (its response is the HTTP response) or as a
deferred job: the platform gets an immediate deferred acknowledgment and the
handler runs as a Starlette background task once that response is sent.
"""

import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from starlette.background import BackgroundTask
from starlette.responses import Response

from ..core.metrics import track_deferred_duration, track_deferred_failure, track_owner_denial
from ..schemas.discord import MessageFlags
from ..schemas.handlers import Command, HandlerCallback, Runner, as_runner
from ..schemas.interactions import Interaction

logger = logging.getLogger(__name__)

OWNER_ONLY_MESSAGE = "This command is owner-only."

BackgroundErrorHook = Callable[["DeferredJob", BaseException], Union[None, Awaitable[None]]]


async def call_handler(callback: Callable, *args: Any) -> Any:
    """Call a sync or async callback and return its result."""
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass
class DeferredJob:
    """A handler invocation scheduled to run after the acknowledgment."""

    label: str
    callback: HandlerCallback
    interaction: Interaction
    payload: Any
    created_at: float = field(default_factory=time.time)

    async def run(self) -> Any:
        return await call_handler(self.callback, self.interaction, self.payload)


class DeferredDispatcher:
    """Applies the owner gate and chooses between inline and deferred execution."""

    def __init__(
        self,
        owner_id: Optional[str] = None,
        on_background_error: Optional[BackgroundErrorHook] = None
    ):
        self.owner_id = owner_id
        self.on_background_error = on_background_error

    def is_owner(self, interaction: Interaction) -> bool:
        user = interaction.user
        return user is not None and self.owner_id is not None and user.id == self.owner_id

    async def dispatch_command(
        self,
        command: Command,
        interaction: Interaction,
        arguments: Any
    ) -> Response:
        """Dispatch a command, refusing owner-only commands for anyone else."""
        if command.owner_only and not self.is_owner(interaction):
            user_id = interaction.user.id if interaction.user else None
            logger.info(f"Owner-only command {command.name!r} refused for user {user_id}")
            track_owner_denial(command.name)
            return interaction.reply({
                "content": OWNER_ONLY_MESSAGE,
                "flags": int(MessageFlags.EPHEMERAL),
            })

        return await self.dispatch(command.runner, interaction, arguments, label=f"command:{command.name}")

    async def dispatch(
        self,
        runner: Union[Runner, HandlerCallback],
        interaction: Interaction,
        payload: Any,
        label: str = "handler"
    ) -> Response:
        """
        Run a handler and produce the HTTP response.

        Args:
            runner: Runner or plain callback
            interaction: Classified interaction
            payload: Argument map, custom-id data or modal field map
            label: Name used in logs and metrics

        Returns:
            The handler's response, or a deferred acknowledgment carrying the
            job as its background task
        """
        runner = as_runner(runner)

        if not runner.should_defer:
            result = await call_handler(runner.callback, interaction, payload)
            return self._to_response(interaction, result, label)

        if runner.update:
            acknowledgment = interaction.defer_update()
        else:
            acknowledgment = interaction.defer_reply(ephemeral=runner.ephemeral)

        job = DeferredJob(
            label=label,
            callback=runner.callback,
            interaction=interaction,
            payload=payload,
        )
        acknowledgment.background = BackgroundTask(self.run_job, job)
        logger.debug(f"Deferred {label} for interaction {interaction.id}")
        return acknowledgment

    async def run_job(self, job: DeferredJob) -> None:
        """Run a deferred job; failures are logged and reported, never raised."""
        waited = time.time() - job.created_at
        logger.info(f"Running deferred {job.label} for interaction {job.interaction.id} (queued {waited:.3f}s)")

        try:
            with track_deferred_duration(job.label):
                await job.run()
        except Exception as exc:
            logger.exception(f"Deferred {job.label} failed for interaction {job.interaction.id}: {exc}")
            track_deferred_failure(job.label)
            await self._report(job, exc)
            return

        logger.info(f"Deferred {job.label} completed for interaction {job.interaction.id}")

    async def _report(self, job: DeferredJob, exc: Exception) -> None:
        if self.on_background_error is None:
            return
        try:
            await call_handler(self.on_background_error, job, exc)
        except Exception:
            logger.exception(f"Background error hook failed for {job.label}")

    @staticmethod
    def _to_response(interaction: Interaction, result: Any, label: str) -> Response:
        if isinstance(result, Response):
            return result
        if isinstance(result, (str, dict)):
            return interaction.reply(result)
        raise TypeError(
            f"Handler {label} returned {type(result).__name__}; "
            f"expected a Response, a message dict or a string"
        )
