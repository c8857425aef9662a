"""Request dispatcher — hooks, invocation, and cancellation for one request.

Each routed request runs through a short pipeline of typed steps::

    RECEIVED -> BEFORE_HOOK? -> INVOKING -> AFTER_HOOK? -> DONE
                                  |
                                  +-> CANCELED (client went away)
    any step error ------------------------------------------> FAILED

Steps run strictly one after another. The first failure skips the rest
and propagates to the error normalizer. A hook fails by raising, or by
returning an exception instance or a message string.

The invocation runs in an anyio task group next to a watcher that waits
for the client's ``http.disconnect``. Whichever finishes first decides
the outcome through the request's ``CancellationToken``: a settled token
ignores late disconnects, a cancelled token means no response is sent.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

import anyio

from remoterest._internal.invoke import invoke
from remoterest._internal.types import Hook
from remoterest.cancellation import CancellationToken
from remoterest.config import RestConfig
from remoterest.context import RestContext, context_var
from remoterest.errors import RemoteError, RequestCanceled
from remoterest.http.response import Response
from remoterest.remotes import Remotes, SharedMethod
from remoterest.server.encoder import encode_result

logger = logging.getLogger("remoterest.rest")


class DispatchState(Enum):
    RECEIVED = "received"
    BEFORE_HOOK = "before_hook"
    INVOKING = "invoking"
    AFTER_HOOK = "after_hook"
    DONE = "done"
    CANCELED = "canceled"
    FAILED = "failed"


StepFunc: TypeAlias = Callable[[RestContext], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class Step:
    """One pipeline stage: the state it puts the context in, and its work."""

    state: DispatchState
    name: str
    run: StepFunc


class RequestDispatcher:
    """Run the before hook, the remote invocation, and the after hook.

    Usage::

        dispatcher = RequestDispatcher(remotes, config)
        response = await dispatcher.dispatch(ctx)

    Raises the step's error on failure and ``RequestCanceled`` when the
    client disconnected before the invocation completed.
    """

    __slots__ = ("_config", "_remotes")

    def __init__(self, remotes: Remotes, config: RestConfig | None = None) -> None:
        self._remotes = remotes
        self._config = config or RestConfig()

    def steps(self, method: SharedMethod) -> list[Step]:
        """The pipeline for *method*; hook steps only when hooks are set."""
        steps: list[Step] = []
        if method.before is not None:
            steps.append(
                Step(DispatchState.BEFORE_HOOK, "before", self._hook_step(method.before, "before"))
            )
        steps.append(Step(DispatchState.INVOKING, "invoke", self._invoke))
        if method.after is not None:
            steps.append(
                Step(DispatchState.AFTER_HOOK, "after", self._hook_step(method.after, "after"))
            )
        return steps

    async def dispatch(self, ctx: RestContext) -> Response:
        """Run every step for *ctx* and encode the result."""
        ctx.state = DispatchState.RECEIVED
        var_token = context_var.set(ctx)
        try:
            for step in self.steps(ctx.method):
                ctx.state = step.state
                try:
                    await step.run(ctx)
                except RequestCanceled:
                    ctx.state = DispatchState.CANCELED
                    raise
                except Exception:
                    ctx.state = DispatchState.FAILED
                    raise
            ctx.state = DispatchState.DONE
        finally:
            context_var.reset(var_token)
        return encode_result(ctx, self._config)

    # -- Steps --

    def _hook_step(self, hook: Hook, label: str) -> StepFunc:
        async def run_hook(ctx: RestContext) -> None:
            logger.debug("Invoking rest.%s for %s", label, ctx.method_string)
            scope = self._remotes.get_scope(ctx, ctx.method)
            outcome = await invoke(hook, scope, ctx)
            raise_hook_error(outcome)

        return run_hook

    async def _invoke(self, ctx: RestContext) -> None:
        token = CancellationToken()
        token.on_cancel(
            lambda reason: logger.debug("Canceled %s: %s", ctx.method_string, reason)
        )
        props = ctx.request.props(extended_query=self._config.urlencoded_extended)
        outcome: dict[str, Any] = {}

        async with anyio.create_task_group() as tg:

            async def watch_disconnect() -> None:
                await ctx.request.wait_disconnect()
                if token.cancel("client disconnected"):
                    tg.cancel_scope.cancel()

            async def call_remote() -> None:
                try:
                    # The client may have left while a before hook ran
                    token.raise_if_cancelled()
                    outcome["result"] = await self._remotes.invoke(
                        ctx.method,
                        props=props,
                        payload=ctx.request.payload,
                        token=token,
                    )
                except Exception as exc:
                    outcome["error"] = exc
                token.settle()
                tg.cancel_scope.cancel()

            tg.start_soon(watch_disconnect)
            tg.start_soon(call_remote)

        if token.cancelled:
            raise RequestCanceled(token.reason or "Request canceled")
        if "error" in outcome:
            raise outcome["error"]
        ctx.result = outcome.get("result")


def raise_hook_error(outcome: Any) -> None:
    """Raise the error a hook returned, if any."""
    if isinstance(outcome, BaseException):
        raise outcome
    if isinstance(outcome, str):
        raise RemoteError(outcome, name="Error")
