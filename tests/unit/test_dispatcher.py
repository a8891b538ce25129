"""Unit tests for the deferred dispatcher."""

import json
from unittest.mock import AsyncMock, Mock

import pytest
from starlette.responses import JSONResponse

from interaction_gateway.schemas.discord import RawInteraction
from interaction_gateway.schemas.handlers import Command, Runner
from interaction_gateway.services.classifier import classify
from interaction_gateway.services.dispatcher import (
    OWNER_ONLY_MESSAGE,
    DeferredDispatcher,
    DeferredJob,
)

OWNER = "100000000000000001"


def _interaction(payload):
    return classify(RawInteraction.model_validate(payload))


def _json(response):
    return json.loads(response.body)


class TestImmediateDispatch:

    @pytest.mark.asyncio
    async def test_sync_callback_response_is_returned(self, payloads):
        interaction = _interaction(payloads.button("\u0001data"))
        expected = JSONResponse({"type": 4, "data": {"content": "hi"}})
        callback = Mock(return_value=expected)

        response = await DeferredDispatcher().dispatch(callback, interaction, "data")

        assert response is expected
        callback.assert_called_once_with(interaction, "data")
        assert response.background is None

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self, payloads):
        interaction = _interaction(payloads.button("\u0001"))

        async def callback(interaction, data):
            return interaction.update({"content": "clicked"})

        response = await DeferredDispatcher().dispatch(Runner(callback=callback), interaction, "")

        assert _json(response) == {"type": 7, "data": {"content": "clicked"}}

    @pytest.mark.asyncio
    async def test_plain_results_become_replies(self, payloads):
        interaction = _interaction(payloads.command("echo"))
        dispatcher = DeferredDispatcher()

        text = await dispatcher.dispatch(lambda i, p: "pong", interaction, {})
        message = await dispatcher.dispatch(lambda i, p: {"content": "pong", "tts": False}, interaction, {})

        assert _json(text) == {"type": 4, "data": {"content": "pong"}}
        assert _json(message) == {"type": 4, "data": {"content": "pong", "tts": False}}

    @pytest.mark.asyncio
    async def test_unusable_result_raises(self, payloads):
        interaction = _interaction(payloads.command("echo"))

        with pytest.raises(TypeError):
            await DeferredDispatcher().dispatch(lambda i, p: None, interaction, {})

    @pytest.mark.asyncio
    async def test_handler_errors_propagate(self, payloads):
        interaction = _interaction(payloads.command("echo"))

        def broken(interaction, arguments):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await DeferredDispatcher().dispatch(broken, interaction, {})


class TestDeferredDispatch:

    @pytest.mark.asyncio
    async def test_acknowledges_before_running(self, payloads):
        interaction = _interaction(payloads.command("slow"))
        callback = AsyncMock()

        response = await DeferredDispatcher().dispatch(
            Runner(callback=callback, should_defer=True), interaction, {"n": 1}
        )

        assert _json(response) == {"type": 5, "data": {}}
        callback.assert_not_called()

        await response.background()

        callback.assert_awaited_once_with(interaction, {"n": 1})

    @pytest.mark.asyncio
    async def test_ephemeral_deferral(self, payloads):
        interaction = _interaction(payloads.command("slow"))

        response = await DeferredDispatcher().dispatch(
            Runner(callback=AsyncMock(), should_defer=True, ephemeral=True), interaction, {}
        )

        assert _json(response) == {"type": 5, "data": {"flags": 64}}

    @pytest.mark.asyncio
    async def test_update_deferral(self, payloads):
        interaction = _interaction(payloads.button("\u0001"))

        response = await DeferredDispatcher().dispatch(
            Runner(callback=AsyncMock(), should_defer=True, update=True), interaction, ""
        )

        assert _json(response) == {"type": 6}

    @pytest.mark.asyncio
    async def test_sync_callback_runs_in_background(self, payloads):
        interaction = _interaction(payloads.button("\u0001"))
        callback = Mock(return_value=None)

        response = await DeferredDispatcher().dispatch(Runner(callback=callback, should_defer=True), interaction, "x")
        await response.background()

        callback.assert_called_once_with(interaction, "x")

    @pytest.mark.asyncio
    async def test_background_failure_is_reported_not_raised(self, payloads):
        interaction = _interaction(payloads.command("slow"))
        hook = Mock()
        error = ValueError("late failure")
        dispatcher = DeferredDispatcher(on_background_error=hook)

        response = await dispatcher.dispatch(
            Runner(callback=AsyncMock(side_effect=error), should_defer=True),
            interaction,
            {},
            label="command:slow",
        )
        await response.background()

        hook.assert_called_once()
        job, reported = hook.call_args.args
        assert isinstance(job, DeferredJob)
        assert job.label == "command:slow"
        assert reported is error
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_failing_hook_is_contained(self, payloads):
        interaction = _interaction(payloads.command("slow"))
        dispatcher = DeferredDispatcher(on_background_error=AsyncMock(side_effect=RuntimeError("hook")))

        job = DeferredJob(label="x", callback=AsyncMock(side_effect=ValueError()), interaction=interaction, payload={})

        await dispatcher.run_job(job)


class TestOwnerGate:

    @pytest.mark.asyncio
    async def test_non_owner_is_refused(self, payloads):
        interaction = _interaction(payloads.command("shutdown", user_id="999"))
        callback = Mock()
        command = Command(name="shutdown", runner=callback, owner_only=True)

        response = await DeferredDispatcher(owner_id=OWNER).dispatch_command(command, interaction, {})

        assert response.status_code == 200
        assert _json(response) == {"type": 4, "data": {"content": OWNER_ONLY_MESSAGE, "flags": 64}}
        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_owner_is_allowed(self, payloads):
        interaction = _interaction(payloads.command("shutdown", user_id=OWNER))
        command = Command(name="shutdown", runner=lambda i, a: "bye", owner_only=True)

        response = await DeferredDispatcher(owner_id=OWNER).dispatch_command(command, interaction, {})

        assert _json(response)["data"]["content"] == "bye"

    @pytest.mark.asyncio
    async def test_missing_user_is_refused(self, payloads):
        payload = payloads.command("shutdown")
        del payload["user"]
        callback = Mock()

        response = await DeferredDispatcher(owner_id=OWNER).dispatch_command(
            Command(name="shutdown", runner=callback, owner_only=True), _interaction(payload), {}
        )

        assert _json(response)["data"]["content"] == OWNER_ONLY_MESSAGE
        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_unset_owner_refuses_everyone(self, payloads):
        interaction = _interaction(payloads.command("shutdown", user_id=OWNER))
        callback = Mock()

        await DeferredDispatcher().dispatch_command(
            Command(name="shutdown", runner=callback, owner_only=True), interaction, {}
        )

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_public_command_ignores_owner(self, payloads):
        interaction = _interaction(payloads.command("echo", user_id="999"))

        response = await DeferredDispatcher(owner_id=OWNER).dispatch_command(
            Command(name="echo", runner=lambda i, a: "echo"), interaction, {}
        )

        assert _json(response)["data"]["content"] == "echo"
