"""
Supervises a single Ollama server child process.
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ollama_runtime.exceptions import ServerStateError

log = logging.getLogger(__name__)

LogCallback = Callable[[str], None]


class ServerState(str, Enum):
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


class OllamaServer:
    """
    Owns one `ollama serve` process for the duration of a run.

    A handle is single-use: once stopped it cannot be started again, a new
    handle is created instead. `stop()` may be called any number of times.
    Readiness is decided by the caller's health probe, which promotes the
    handle with `mark_running()`.
    """

    def __init__(
        self,
        bin_path: Path,
        executable_name: str,
        log: Optional[LogCallback] = None,
        stop_timeout: float = 5.0,
    ):
        self.bin_path = Path(bin_path)
        self.executable_name = executable_name
        self.stop_timeout = stop_timeout
        self.state = ServerState.NOT_STARTED
        self.returncode: Optional[int] = None

        self._log = log
        self._process: Optional[asyncio.subprocess.Process] = None
        self._stopping = False
        self._tasks: List[asyncio.Task] = []

    @property
    def executable_path(self) -> Path:
        return self.bin_path / self.executable_name

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def is_alive(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self, args: Sequence[str] = ("serve",)) -> None:
        """
        Spawns the server with the install directory as working directory.

        Raises:
            ServerStateError: The handle was already started or stopped.
            OSError: The executable could not be launched.
        """
        if self.state is not ServerState.NOT_STARTED:
            raise ServerStateError(
                f"Cannot start a server handle in state '{self.state.value}'."
            )

        log.info(f"Starting {self.executable_path} {' '.join(args)}")
        self._process = await asyncio.create_subprocess_exec(
            str(self.executable_path),
            *args,
            cwd=str(self.bin_path),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        self.state = ServerState.STARTING
        log.debug(f"Ollama server spawned with pid {self._process.pid}")

        process = self._process
        self._tasks = [
            asyncio.create_task(self._pump(process.stdout, "stdout")),
            asyncio.create_task(self._pump(process.stderr, "stderr")),
            asyncio.create_task(self._watch(process)),
        ]

    def mark_running(self) -> None:
        """Records that the health probe has seen the server answer."""
        if self.state is ServerState.STARTING:
            self.state = ServerState.RUNNING

    async def _pump(self, stream: Optional[asyncio.StreamReader], name: str) -> None:
        """Forwards each output line to the log callback."""
        if stream is None:
            return
        while True:
            line = await stream.readline()
            if not line:
                break
            text = line.decode("utf-8", errors="replace").rstrip()
            log.debug(f"[ollama {name}] {text}")
            if self._log:
                try:
                    self._log(text)
                except Exception as e:
                    log.warning(f"Server log callback failed: {e}")

    async def _watch(self, process: asyncio.subprocess.Process) -> None:
        """Clears the process slot when the child exits on its own."""
        code = await process.wait()
        self.returncode = code
        if self._stopping:
            return
        log.warning(f"Ollama server exited unexpectedly with code {code}")
        if self._process is process:
            self._process = None

    async def wait(self) -> Optional[int]:
        """Waits for the tracked process to exit and returns its exit code."""
        process = self._process
        if process is None:
            return self.returncode
        return await process.wait()

    async def stop(self) -> None:
        """
        Terminates the server, escalating to kill after `stop_timeout` seconds.
        A no-op if no process is tracked.
        """
        process, self._process = self._process, None
        self.state = ServerState.STOPPED
        if process is None:
            return

        self._stopping = True
        if process.returncode is None:
            try:
                process.terminate()
                await asyncio.wait_for(process.wait(), timeout=self.stop_timeout)
            except ProcessLookupError:
                pass
            except asyncio.TimeoutError:
                log.warning(
                    f"Ollama server did not exit within {self.stop_timeout:g}s, killing it"
                )
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()

        self.returncode = process.returncode
        for task in self._tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        log.info(f"Ollama server stopped (exit code {self.returncode})")
