"""Run a resolved memos-mcp binary as a child process."""
import asyncio
import os
import signal
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from memos_mcp.errors import SpawnError
from memos_mcp.logging import get_logger

logger = get_logger(__name__)

FORWARDED_SIGNALS = [
    sig
    for sig in (
        getattr(signal, "SIGINT", None),
        getattr(signal, "SIGTERM", None),
        getattr(signal, "SIGHUP", None),
    )
    if sig is not None
]


class SignalForwarding:
    """Handlers that relay termination signals to a child process.

    Installed by ``forward_signals``; ``restore()`` puts back whatever
    handlers were active before.
    """

    def __init__(self, process: Any, signals: Sequence[signal.Signals]):
        self.process = process
        self.signals = list(signals)
        self._previous: Dict[signal.Signals, Any] = {}

    def _handle(self, signum: int, frame: Any) -> None:
        if self.process.returncode is not None:
            return
        logger.debug("forwarding_signal", signal=signum, pid=self.process.pid)
        try:
            self.process.send_signal(signum)
        except (ProcessLookupError, ValueError) as e:
            # child already gone, or the signal has no equivalent on Windows
            logger.debug("signal_not_forwarded", signal=signum, error=str(e))

    def install(self) -> "SignalForwarding":
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self._handle)
        return self

    def restore(self) -> None:
        while self._previous:
            sig, handler = self._previous.popitem()
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)

    def __enter__(self) -> "SignalForwarding":
        return self

    def __exit__(self, *exc_info) -> None:
        self.restore()


def forward_signals(
    process: Any, signals: Optional[Sequence[signal.Signals]] = None
) -> SignalForwarding:
    """Relay SIGINT/SIGTERM/SIGHUP to process until the handle is restored."""
    return SignalForwarding(
        process, FORWARDED_SIGNALS if signals is None else signals
    ).install()


def exit_code_of(returncode: Optional[int]) -> int:
    """Child exit code; termination by a signal counts as 0."""
    if returncode is None or returncode < 0:
        return 0
    return returncode


async def run_binary(
    binary_path: Path,
    args: List[str],
    env: Optional[Mapping[str, str]] = None,
    forwarder: Callable[[Any], SignalForwarding] = forward_signals,
) -> int:
    """Run binary_path with inherited stdio and return its exit code.

    Raises:
        SpawnError: the binary could not be executed
    """
    process_env = {**os.environ, **(env or {})}

    logger.debug("spawning_binary", path=str(binary_path), args=len(args))
    try:
        process = await asyncio.create_subprocess_exec(
            str(binary_path), *args, env=process_env
        )
    except OSError as e:
        raise SpawnError(str(binary_path), str(e)) from e

    with forwarder(process):
        returncode = await process.wait()

    logger.debug("binary_exited", returncode=returncode)
    return exit_code_of(returncode)
