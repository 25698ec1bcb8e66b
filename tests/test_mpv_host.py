from __future__ import annotations

import logging
import threading

from auto_hdr.mpv_host import MpvHost


class _FakePlayer:
    """Mimics the slice of python-mpv's ``MPV`` API the host adapter uses."""

    def __init__(self, properties):
        self._properties = properties
        self.observers = []
        self.event_callbacks = []
        self.pause = False

    def __getattr__(self, name):
        key = name.replace("_", "-")
        if key not in self._properties:
            raise AttributeError(name)
        return self._properties[key]

    def observe_property(self, name, handler):
        self.observers.append((name, handler))

    def unobserve_property(self, name, handler):
        self.observers.remove((name, handler))

    def event_callback(self, *event_types):
        def register(callback):
            def wrapper(event):
                callback(event)

            wrapper.event_types = event_types
            wrapper.unregister_mpv_events = lambda: self.event_callbacks.remove(wrapper)
            self.event_callbacks.append(wrapper)
            return wrapper

        return register


def _host(properties=None):
    player = _FakePlayer(properties or {})
    return MpvHost(player, logging.getLogger("test-mpv-host")), player


def test_property_reads():
    host, _player = _host(
        {
            "video-params/primaries": "bt.2020",
            "video-params/dolby-vision": True,
            "container-fps": 23.976,
            "estimated-vf-fps": None,
        }
    )

    assert host.get_property("video-params/primaries") == "bt.2020"
    assert host.get_property("video-params/dolby-vision") == "yes"
    assert host.get_property_native("container-fps") == 23.976
    assert host.get_property_native("estimated-vf-fps") is None
    assert host.get_property("video-params/transfer") is None


def test_subscribe_and_unsubscribe():
    host, player = _host()

    def callback(name, value):
        return None

    handle = host.subscribe("video-params/primaries", callback)
    assert player.observers == [("video-params/primaries", callback)]

    host.unsubscribe(handle)
    host.unsubscribe(handle)
    assert player.observers == []


def test_lifecycle_handlers_dispatch_and_unregister_on_close():
    host, player = _host()
    seen = []

    host.register_lifecycle_handler("end-file", lambda: seen.append("end"))
    player.event_callbacks[0]({"event": "end-file"})

    assert seen == ["end"]
    assert player.event_callbacks[0].event_types == ("end-file",)

    host.close()
    assert player.event_callbacks == []


def test_set_paused_and_scheduled_callback():
    host, player = _host()
    fired = threading.Event()

    host.set_paused(True)
    assert player.pause is True

    host.schedule_delayed(0.01, fired.set)
    assert fired.wait(timeout=1.0)


def test_close_cancels_pending_timers():
    host, _player = _host()
    fired = threading.Event()

    timer = host.schedule_delayed(5.0, fired.set)
    host.close()

    timer.join(timeout=1.0)
    assert not timer.is_alive()
    assert not fired.is_set()
