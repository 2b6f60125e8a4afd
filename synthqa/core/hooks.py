"""Hook executor and callable helpers.

Hooks in one phase are launched together and joined before the runner moves
on; no ordering between them is guaranteed. Callbacks may be plain functions
or coroutine functions.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from synthqa.errors import ErrorContext, HookError


async def maybe_await(value: Any) -> Any:
    """Await ``value`` when it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def invoke(callback: Callable[[], Any]) -> Any:
    """Call a zero-argument callback and wait for its result."""
    return await maybe_await(callback())


def call_with_supported_kwargs(func: Callable[..., Any], available: Mapping[str, Any]) -> Any:
    """Call ``func`` with the subset of ``available`` its signature declares.

    A function accepting ``**kwargs`` receives everything.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return func(**available)

    parameters = signature.parameters.values()
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters):
        return func(**available)

    accepted = {
        p.name
        for p in parameters
        if p.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    }
    return func(**{k: v for k, v in available.items() if k in accepted})


async def run_hooks(
    hooks: Iterable[Callable[[], Any]],
    phase: str = "hooks",
    journey_name: str | None = None,
) -> None:
    """Run every hook concurrently and wait for all of them to settle.

    Raises:
        HookError: If any hook raised. ``errors`` lists every failure in
            registration order and the first one is the cause.
    """
    hooks = list(hooks)
    if not hooks:
        return

    outcomes = await asyncio.gather(*(invoke(hook) for hook in hooks), return_exceptions=True)

    errors: list[BaseException] = []
    for outcome in outcomes:
        if not isinstance(outcome, BaseException):
            continue
        if not isinstance(outcome, Exception):
            raise outcome
        errors.append(outcome)

    if errors:
        raise HookError(
            message=f"{len(errors)} of {len(hooks)} {phase} hook(s) failed: {errors[0]}",
            phase=phase,
            errors=errors,
            context=ErrorContext(journey_name=journey_name),
        )
