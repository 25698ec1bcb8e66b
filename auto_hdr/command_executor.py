"""Blocking invocation of the external HDR and display-mode tools."""
from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Tuple

from .display_state import DisplayMode
from .logging_utils import LOGGER_NAME

Runner = Callable[..., Any]


@dataclass
class CommandResult:
    argv: Tuple[str, ...]
    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.exit_code == 0


class CommandExecutor:
    """Runs a process to completion and reports success; no retries, no timeout."""

    def __init__(self, logger: Optional[logging.Logger] = None, runner: Optional[Runner] = None) -> None:
        self._logger = logger or logging.getLogger(LOGGER_NAME)
        self._runner = runner or subprocess.run

    def run(self, argv: Sequence[str]) -> CommandResult:
        command = tuple(str(part) for part in argv)
        self._logger.debug("Executing command: %s", _format_command(command))
        try:
            completed = self._runner(
                list(command),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
            )
        except OSError as exc:
            result = CommandResult(command, None, error=str(exc))
            self._log_failure(result)
            return result
        result = CommandResult(
            command,
            completed.returncode,
            (completed.stdout or "").rstrip("\r\n"),
            completed.stderr or "",
        )
        if result.stdout:
            self._logger.debug("Command output: %s", result.stdout)
        if not result.ok:
            self._log_failure(result)
        return result

    def _log_failure(self, result: CommandResult) -> None:
        segments = [
            f"Command failed: {_format_command(result.argv)}",
            f"Return code: {result.exit_code if result.exit_code is not None else 'n/a'}",
        ]
        if result.error:
            segments.append(f"Error: {result.error}")
        stderr_tail = _tail_output(result.stderr)
        if stderr_tail:
            segments.append("stderr tail:\n" + stderr_tail)
        self._logger.error("\n".join(segments))


class HdrToggler:
    """``<tool> on`` / ``<tool> off``."""

    def __init__(self, path: str, executor: CommandExecutor) -> None:
        self.path = str(path)
        self._executor = executor

    def available(self) -> bool:
        return Path(self.path).exists()

    def set_enabled(self, enabled: bool) -> bool:
        action = "on" if enabled else "off"
        return self._executor.run([self.path, action]).ok


class ModeSetter:
    """``<tool> <verb> <width> <height> <color depth> <refresh Hz>``."""

    def __init__(self, path: str, executor: CommandExecutor, verb: str = "setdisplay") -> None:
        self.path = str(path)
        self.verb = verb
        self._executor = executor

    def available(self) -> bool:
        return Path(self.path).exists()

    def set_mode(self, mode: DisplayMode) -> bool:
        argv = [
            self.path,
            self.verb,
            str(mode.width),
            str(mode.height),
            str(mode.color_depth),
            str(mode.refresh_rate),
        ]
        return self._executor.run(argv).ok


def _format_command(argv: Sequence[str]) -> str:
    try:
        return shlex.join(argv)
    except Exception:
        return " ".join(argv)


def _tail_output(text: str, limit: int = 1000) -> str:
    stripped = (text or "").strip()
    if not stripped:
        return ""
    if len(stripped) <= limit:
        return stripped
    return stripped[-limit:]
