from __future__ import annotations

import logging

from auto_hdr.command_executor import CommandExecutor, HdrToggler, ModeSetter
from auto_hdr.display_state import DisplayMode
from fake_host import RecordingRunner


def test_successful_command_reports_ok():
    runner = RecordingRunner()
    executor = CommandExecutor(logging.getLogger("test-exec"), runner=runner)

    result = executor.run(["tool", "on"])

    assert result.ok is True
    assert result.exit_code == 0
    assert runner.calls == [["tool", "on"]]


def test_nonzero_exit_logs_stderr(caplog):
    runner = RecordingRunner(default=2)
    runner.stderr = "display busy"
    executor = CommandExecutor(logging.getLogger("test-exec-fail"), runner=runner)

    with caplog.at_level(logging.ERROR, logger="test-exec-fail"):
        result = executor.run(["tool", "off"])

    assert result.ok is False
    assert result.exit_code == 2
    assert "display busy" in caplog.text
    assert "Return code: 2" in caplog.text


def test_launch_failure_becomes_failed_result():
    def runner(argv, **_kwargs):
        raise FileNotFoundError(2, "No such file", argv[0])

    executor = CommandExecutor(logging.getLogger("test-exec-missing"), runner=runner)

    result = executor.run(["missing.exe", "on"])

    assert result.ok is False
    assert result.exit_code is None
    assert result.error


def test_tool_argv_contracts():
    runner = RecordingRunner()
    executor = CommandExecutor(logging.getLogger("test-exec-tools"), runner=runner)
    hdr = HdrToggler("HDRCmd.exe", executor)
    mode = ModeSetter("nircmd.exe", executor, verb="setmode")

    assert hdr.set_enabled(True) is True
    assert hdr.set_enabled(False) is True
    assert mode.set_mode(DisplayMode(3840, 2160, 32, 23)) is True

    assert runner.calls == [
        ["HDRCmd.exe", "on"],
        ["HDRCmd.exe", "off"],
        ["nircmd.exe", "setmode", "3840", "2160", "32", "23"],
    ]


def test_tool_availability_checks_path(tmp_path):
    executor = CommandExecutor(runner=RecordingRunner())
    present = tmp_path / "HDRCmd.exe"
    present.write_text("", encoding="utf-8")

    assert HdrToggler(str(present), executor).available() is True
    assert ModeSetter(str(tmp_path / "nircmd.exe"), executor).available() is False
