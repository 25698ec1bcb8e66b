from __future__ import annotations

import json
import subprocess

import load
from auto_hdr.mpv_host import EVENT_END_FILE, EVENT_FILE_LOADED, EVENT_SHUTDOWN
from auto_hdr.session import METADATA_PROPERTY
from fake_host import FakeHost, RecordingRunner


def test_script_start_stop_idempotent(monkeypatch, tmp_path):
    class DummyRuntime:
        def __init__(self, *args, **kwargs):
            self.started = 0
            self.stopped = 0

        def start(self):
            self.started += 1
            return load.PLUGIN_NAME

        def stop(self):
            self.stopped += 1

    monkeypatch.setattr(load, "_PluginRuntime", DummyRuntime)

    result1 = load.script_start(object(), str(tmp_path))
    plugin = load._plugin
    result2 = load.script_start(object(), str(tmp_path))

    assert result1 == load.PLUGIN_NAME
    assert result2 == load.PLUGIN_NAME
    assert isinstance(plugin, DummyRuntime)
    assert load._plugin is plugin

    load.script_stop()
    load.script_stop()

    assert load._plugin is None
    assert plugin.stopped == 1


def _write_settings(tmp_path, **overrides):
    hdr_tool = tmp_path / "HDRCmd.exe"
    mode_tool = tmp_path / "nircmd.exe"
    hdr_tool.write_text("", encoding="utf-8")
    mode_tool.write_text("", encoding="utf-8")
    settings = {
        "hdr_cmd_path": str(hdr_tool),
        "mode_cmd_path": str(mode_tool),
        "desktop_width": 3840,
        "desktop_height": 2160,
        "default_desktop_refresh_rate": 60,
        "playback_start_delay_ms": 0,
    }
    settings.update(overrides)
    (tmp_path / "auto_hdr_settings.json").write_text(json.dumps(settings), encoding="utf-8")
    return str(hdr_tool), str(mode_tool)


def test_runtime_reverts_on_end_file_and_shutdown(monkeypatch, tmp_path):
    hdr_tool, mode_tool = _write_settings(tmp_path)
    runner = RecordingRunner()
    monkeypatch.setattr(subprocess, "run", runner)
    host = FakeHost(
        {
            "video-params/primaries": "bt.2020",
            "video-params/transfer": "st2084",
            "container-fps": 23.976,
        }
    )
    runtime = load._PluginRuntime(None, load.Preferences(tmp_path), host=host)

    assert runtime.start() == load.PLUGIN_NAME
    assert runtime.running is True

    host.handlers[EVENT_FILE_LOADED]()
    host.notify(METADATA_PROPERTY, "bt.2020")
    assert runner.calls == [
        [hdr_tool, "on"],
        [mode_tool, "setdisplay", "3840", "2160", "32", "23"],
    ]

    runner.calls.clear()
    host.handlers[EVENT_END_FILE]()
    host.handlers[EVENT_SHUTDOWN]()
    runtime.stop()

    assert runner.calls == [
        [mode_tool, "setdisplay", "3840", "2160", "32", "60"],
        [hdr_tool, "off"],
    ]
    assert host.closed is True


def test_runtime_inactive_without_tools(tmp_path):
    (tmp_path / "auto_hdr_settings.json").write_text(
        json.dumps(
            {
                "hdr_cmd_path": str(tmp_path / "missing-hdr.exe"),
                "mode_cmd_path": str(tmp_path / "missing-nircmd.exe"),
            }
        ),
        encoding="utf-8",
    )
    host = FakeHost()
    runtime = load._PluginRuntime(None, load.Preferences(tmp_path), host=host)

    runtime.start()

    assert runtime.running is False
    assert host.handlers == {}
