from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import logging
import subprocess

from jbod_tap.exceptions import ToolUnavailableError
from jbod_tap.logging_utils import TRACE_LEVEL


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    returncode: int
    stderr: str = ""


class CommandRunner:
    """Runs the sg3_utils/lsscsi tools one process at a time.

    Tests substitute an object with the same ``run``/``stream`` methods that
    returns canned output instead of spawning processes.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)

    def run(self, command: list[str]) -> CommandResult:
        try:
            result = subprocess.run(
                command,
                check=False,
                text=True,
                errors="replace",
                capture_output=True,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise ToolUnavailableError(command, exc.strerror or str(exc)) from exc
        if result.returncode != 0:
            self.logger.debug(
                "Command failed (%s): %s", result.returncode, " ".join(command)
            )
            if result.stderr:
                self.logger.log(TRACE_LEVEL, "stderr: %s", result.stderr.strip())
        if result.stdout:
            self.logger.log(TRACE_LEVEL, "stdout: %s", result.stdout.strip())
        return CommandResult(
            stdout=result.stdout or "",
            returncode=result.returncode,
            stderr=result.stderr or "",
        )

    def stream(self, command: list[str]) -> Iterator[str]:
        """Yield stdout lines as the process produces them.

        The process is always reaped, including when the caller stops
        iterating early.
        """
        try:
            process = subprocess.Popen(
                command,
                text=True,
                errors="replace",
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise ToolUnavailableError(command, exc.strerror or str(exc)) from exc
        assert process.stdout is not None
        try:
            for line in process.stdout:
                line = line.rstrip("\n")
                self.logger.log(TRACE_LEVEL, "stdout: %s", line)
                yield line
        finally:
            process.stdout.close()
            returncode = process.wait()
            if returncode not in (0, -13):
                # -13 is SIGPIPE after an early close
                self.logger.debug(
                    "Command failed (%s): %s", returncode, " ".join(command)
                )
