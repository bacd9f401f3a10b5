"""External command execution for build phases."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from .logging import get_logger


class CommandExecutionError(RuntimeError):
    """Raised when an external command exits non-zero or cannot be started."""

    def __init__(self, result: "CommandResult") -> None:
        detail = result.stderr.strip() or result.stdout.strip() or "no output"
        super().__init__(
            f"`{result.display()}` failed with exit code {result.returncode}: {detail}"
        )
        self.result = result


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command invocation."""

    args: Sequence[str]
    cwd: Path
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def display(self) -> str:
        return subprocess.list2cmdline(list(self.args))

    def check(self) -> "CommandResult":
        """Return self, or raise CommandExecutionError when the command failed."""
        if not self.ok:
            raise CommandExecutionError(self)
        return self


Executor = Callable[..., CommandResult]


class ProcessRunner:
    """Runs commands in an explicit working directory and never raises on failure."""

    def __init__(
        self,
        executor: Executor | None = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._executor = executor or self._default_executor
        self.timeout = timeout
        self.logger = get_logger("process")

    def run(self, args: Sequence[str], *, cwd: Path) -> CommandResult:
        command = [str(arg) for arg in args]
        self.logger.info("%s", subprocess.list2cmdline(command))
        result = self._executor(command, cwd=Path(cwd), timeout=self.timeout)
        if result.stdout.strip():
            self.logger.info("%s", result.stdout.rstrip())
        if not result.ok:
            self.logger.warning("%s", CommandExecutionError(result))
        return result

    @staticmethod
    def _default_executor(
        args: Sequence[str],
        *,
        cwd: Path,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        try:
            completed = subprocess.run(
                list(args),
                cwd=str(cwd),
                check=False,
                text=True,
                capture_output=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            return CommandResult(
                args=list(args),
                cwd=cwd,
                returncode=-1,
                stdout=_as_text(exc.stdout),
                stderr=f"timed out after {exc.timeout} seconds",
            )
        except OSError as exc:
            # Missing executable or unusable working directory.
            return CommandResult(args=list(args), cwd=cwd, returncode=-1, stderr=str(exc))
        return CommandResult(
            args=list(args),
            cwd=cwd,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


class DryRunRunner(ProcessRunner):
    """Logs commands without executing them; every command reports success."""

    def __init__(self) -> None:
        super().__init__(executor=self._record)
        self.commands: list[list[str]] = []

    def _record(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        self.commands.append(list(args))
        return CommandResult(args=list(args), cwd=cwd, returncode=0)


def _as_text(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value if isinstance(value, str) else ""


__all__ = ["CommandExecutionError", "CommandResult", "DryRunRunner", "ProcessRunner"]
