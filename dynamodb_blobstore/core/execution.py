"""
Sync/async execution of store operations.

Every store and blob operation is written once, as a generator that yields a
zero-argument callable ("step") wherever it needs DynamoDB:

    def blob_exists(self, key):
        row = yield lambda: self.gateway.get_item(key)
        return bool(row)

The step's return value is sent back into the generator; an exception raised
by the step is thrown back in at the same yield, so ordinary try/except in the
body handles it in both modes.

Two drivers run such a body:
- run_sync() calls each step on the calling thread and returns the result.
- run_async() is a coroutine that hands each step to an executor, so the
  awaiting task suspends at every network boundary instead of blocking the
  event loop.

The dual_mode decorator picks a driver from the per-call ``opts`` mapping
(``{"sync": False}`` selects async mode; sync is the default). Operations
that never touch the network are plain functions; dual_mode returns their
result directly in sync mode and wraps it in an awaitable in async mode.
"""

import asyncio
import functools
import inspect
from concurrent.futures import Executor
from typing import Any, Callable, Generator, Mapping, Optional

Step = Callable[[], Any]
OperationBody = Generator[Step, Any, Any]

DEFAULT_OPTS = {'sync': True}


def is_sync(opts: Optional[Mapping[str, Any]]) -> bool:
    """Return the execution mode carried by a per-call options mapping."""
    if not opts:
        return True
    return bool(opts.get('sync', True))


def run_sync(body: OperationBody) -> Any:
    """Drive an operation body to completion on the calling thread."""
    try:
        step = next(body)
        while True:
            try:
                result = step()
            except Exception as e:
                step = body.throw(e)
            else:
                step = body.send(result)
    except StopIteration as stop:
        return stop.value


async def run_async(body: OperationBody, executor: Optional[Executor] = None) -> Any:
    """Drive an operation body, running each step in an executor.

    Args:
        body: Operation generator
        executor: Executor for blocking steps (the loop's default if None)
    """
    loop = asyncio.get_running_loop()
    try:
        step = next(body)
        while True:
            try:
                result = await loop.run_in_executor(executor, step)
            except Exception as e:
                step = body.throw(e)
            else:
                step = body.send(result)
    except StopIteration as stop:
        return stop.value


async def _resolved(value: Any) -> Any:
    return value


def execute(body: Any, opts: Optional[Mapping[str, Any]] = None) -> Any:
    """Run body in the mode selected by opts.

    body may be an operation generator or an already computed value.
    """
    if inspect.isgenerator(body):
        if is_sync(opts):
            return run_sync(body)
        return run_async(body)
    if is_sync(opts):
        return body
    return _resolved(body)


def dual_mode(func: Callable) -> Callable:
    """Let an operation run blocking or awaitable depending on ``opts``.

    The wrapped callable accepts an extra argument ``opts``, either by
    keyword or as one positional argument after all of func's own, which is
    how the backend protocols declare it. Errors raised before the body
    starts (bad arguments) surface the same way in both modes: raised
    directly in sync mode, raised on await in async mode.
    """
    positional = [
        parameter for parameter in inspect.signature(func).parameters.values()
        if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    arity = len(positional)

    @functools.wraps(func)
    def wrapper(*args, opts: Optional[Mapping[str, Any]] = None, **kwargs):
        if len(args) == arity + 1 and opts is None:
            args, opts = args[:-1], args[-1]
        if is_sync(opts):
            return execute(func(*args, **kwargs), opts)

        async def deferred():
            return await execute(func(*args, **kwargs), opts)

        return deferred()

    return wrapper
