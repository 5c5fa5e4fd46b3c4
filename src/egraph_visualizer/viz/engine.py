"""Layout engine contract and cancellable execution.

The layout algorithm itself is external. An engine takes the JSON-shaped
hierarchy produced by ``LayoutGraph.to_elk()`` and returns the same shape
with absolute ``x``/``y``/``width``/``height`` on every class and e-node,
and ``sections`` (start point, bend points, end point) on every edge, in
the coordinate scope of the edge's owning container.

Layout is slow compared to user interaction, so a request can be
cancelled while the engine runs. Cancellation terminates the underlying
computation and the request fails with ``LayoutCancelledError``; callers
never see partially applied geometry.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
import subprocess
import threading
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from egraph_visualizer.exceptions import LayoutCancelledError, LayoutEngineError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Sequence

logger = logging.getLogger(__name__)


@runtime_checkable
class LayoutEngine(Protocol):
    """Synchronous engine: JSON-shaped graph in, laid-out graph out.

    Must be deterministic: identical input gives identical output.
    """

    def layout(self, graph: dict[str, Any]) -> dict[str, Any]: ...


@runtime_checkable
class AsyncLayoutEngine(Protocol):
    """Engine that can run without blocking the event loop and be cancelled."""

    async def alayout(self, graph: dict[str, Any]) -> dict[str, Any]: ...


class CancelSignal:
    """One-shot cancellation signal carried by a layout request.

    ``cancel()`` may be called from any thread; a waiter on another
    thread's event loop is woken through that loop.

    Example:
        >>> signal = CancelSignal()
        >>> signal.cancel("superseded")
        >>> signal.cancelled, signal.reason
        (True, 'superseded')
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._cancelled = False
        self.reason: object = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: object = None) -> None:
        """Raise the signal. Later calls keep the first reason."""
        with self._lock:
            if self._cancelled:
                return
            self.reason = reason
            self._cancelled = True
            loop = self._loop

        if loop is None or _running_loop() is loop:
            self._event.set()
        elif not loop.is_closed():
            loop.call_soon_threadsafe(self._event.set)

    async def wait(self) -> None:
        with self._lock:
            self._loop = asyncio.get_running_loop()
            if self._cancelled:
                return
        await self._event.wait()


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


# =============================================================================
# Running an engine
# =============================================================================


async def layout_with_cancel(
    engine: LayoutEngine | AsyncLayoutEngine,
    graph: dict[str, Any],
    signal: CancelSignal | None = None,
) -> dict[str, Any]:
    """Run ``engine`` on ``graph``, terminating it if ``signal`` fires first.

    Engines exposing ``alayout`` run on the event loop; plain ``layout``
    engines run in a worker thread and are asked to ``terminate()`` (when
    they support it) on cancellation.

    Raises:
        LayoutCancelledError: If the signal was raised before the engine finished
        LayoutEngineError: If the engine failed; the original error is the cause
    """
    if signal is not None and signal.cancelled:
        raise LayoutCancelledError(signal.reason)

    task = asyncio.ensure_future(_run(engine, graph))
    if signal is None:
        return _result(await _join(task))

    waiter = asyncio.ensure_future(signal.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        waiter.cancel()
        raise

    if task.done():
        waiter.cancel()
        return _result(await _join(task))

    logger.info("Cancelling layout: %s", signal.reason)
    task.cancel()
    # Wait for the engine to actually stop; its outcome is discarded
    await asyncio.gather(task, return_exceptions=True)
    terminate = getattr(engine, "terminate", None)
    if callable(terminate):
        terminate()
    raise LayoutCancelledError(signal.reason)


def _run(engine: LayoutEngine | AsyncLayoutEngine, graph: dict[str, Any]) -> Awaitable[dict[str, Any]]:
    if isinstance(engine, AsyncLayoutEngine):
        return engine.alayout(graph)
    if isinstance(engine, LayoutEngine):
        return asyncio.to_thread(engine.layout, graph)
    raise TypeError(f"{type(engine).__name__} has neither layout() nor alayout()")


async def _join(task: asyncio.Future[dict[str, Any]]) -> dict[str, Any]:
    try:
        return await task
    except (LayoutEngineError, LayoutCancelledError, asyncio.CancelledError):
        raise
    except Exception as e:
        raise LayoutEngineError(f"Layout engine failed: {e}", cause=e) from e


def _result(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        raise LayoutEngineError(f"Layout engine returned {type(result).__name__}, expected an object")
    return result


# =============================================================================
# Subprocess engine
# =============================================================================


class SubprocessLayoutEngine:
    """Runs an external layout program in a child process.

    The program reads the graph as JSON on stdin and writes the laid-out
    graph as JSON on stdout (for example a small Node.js wrapper around
    elkjs). Killing the child is how a running layout is cancelled.

    Args:
        command: Command line, as a string or argument list
        timeout: Seconds before the synchronous ``layout`` gives up
    """

    def __init__(self, command: str | Sequence[str], *, timeout: float | None = None) -> None:
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.command:
            raise ValueError("Layout engine command is empty")
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"SubprocessLayoutEngine({shlex.join(self.command)!r})"

    def layout(self, graph: dict[str, Any]) -> dict[str, Any]:
        try:
            completed = subprocess.run(
                self.command,
                input=json.dumps(graph).encode(),
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise LayoutEngineError(f"Could not run layout engine {self.command[0]!r}: {e}", cause=e) from e
        return self._decode(completed.returncode, completed.stdout, completed.stderr)

    async def alayout(self, graph: dict[str, Any]) -> dict[str, Any]:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise LayoutEngineError(f"Could not run layout engine {self.command[0]!r}: {e}", cause=e) from e

        try:
            stdout, stderr = await process.communicate(json.dumps(graph).encode())
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        return self._decode(process.returncode, stdout, stderr)

    def _decode(self, returncode: int | None, stdout: bytes, stderr: bytes) -> dict[str, Any]:
        if returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            raise LayoutEngineError(f"Layout engine exited with status {returncode}: {detail}")
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise LayoutEngineError(f"Layout engine wrote invalid JSON: {e.msg}", cause=e) from e
