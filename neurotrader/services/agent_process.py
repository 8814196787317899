import logging
import shlex
import subprocess
import threading
from typing import List, Optional, Sequence

from neurotrader.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 10


class ProcessAgent:
    """Obtains replies by running the AgentKit script as a subprocess.

    The script receives the raw user message as its last argument and prints
    the reply on stdout. Two commands are configured, a preferred one (bun)
    and a fallback (node); which of them is usable is decided once by
    ``probe()`` rather than per request.
    """

    def __init__(
        self,
        script_dir: str,
        command: str,
        fallback_command: str = "",
        timeout: float = 60.0,
        max_concurrent: int = 4,
    ):
        self.script_dir = script_dir
        self.commands: List[List[str]] = [shlex.split(c) for c in (command, fallback_command) if c and c.strip()]
        self.timeout = timeout
        self._slots = threading.BoundedSemaphore(max(1, max_concurrent))
        self._probed = False
        self.active_command: Optional[List[str]] = None

    @staticmethod
    def interpreter_available(interpreter: str) -> bool:
        """Run ``<interpreter> --version`` and report whether it succeeded"""
        try:
            result = subprocess.run(
                [interpreter, "--version"],
                capture_output=True,
                text=True,
                timeout=PROBE_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.info(f"Interpreter {interpreter!r} unavailable: {str(e)}")
            return False
        return result.returncode == 0

    def probe(self) -> Optional[List[str]]:
        """Pick the first configured command whose interpreter is installed"""
        self._probed = True
        self.active_command = None
        for command in self.commands:
            if self.interpreter_available(command[0]):
                self.active_command = command
                logger.info(f"Agent process will run with: {' '.join(command)}")
                break
            logger.warning(f"{command[0]} not found, trying the next configured interpreter")
        if self.active_command is None:
            logger.error("No agent interpreter is installed; chat replies will fail")
        return self.active_command

    @property
    def available(self) -> bool:
        if not self._probed:
            self.probe()
        return self.active_command is not None

    def reply(self, message: str, history: Sequence = ()) -> str:
        if not self.available:
            raise UpstreamUnavailable(reason="no agent interpreter is installed")

        if not self._slots.acquire(timeout=self.timeout):
            raise UpstreamUnavailable(reason="too many agent processes running")
        try:
            return self._run(self.active_command + [message])
        finally:
            self._slots.release()

    def _run(self, argv: List[str]) -> str:
        logger.info(f"Running agent process in {self.script_dir}: {argv[0]}")
        try:
            result = subprocess.run(
                argv,
                cwd=self.script_dir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise UpstreamUnavailable(reason=f"agent process timed out after {self.timeout}s") from e
        except OSError as e:
            raise UpstreamUnavailable(reason=f"failed to start agent process: {str(e)}") from e

        output = (result.stdout or "").strip()
        if result.stderr:
            logger.debug(f"Agent stderr: {result.stderr.strip()}")

        if result.returncode != 0:
            logger.error(f"Agent process exited with code {result.returncode}")
            # Partial output is still worth returning
            if output:
                return output
            raise UpstreamUnavailable(
                reason=f"agent process failed with code {result.returncode}: {(result.stderr or '').strip()}"
            )
        if not output:
            raise UpstreamUnavailable(reason="agent process produced no output")
        return output
