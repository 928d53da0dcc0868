"""Textual integration for statekeep. Opt-in — requires textual.

A Textual app owns one asyncio loop, and its widgets may only be touched from
that loop. ``bind(app, container)`` returns an AppBinding that

- runs ``container.set`` on the app's loop, so worker threads can commit
  state and every commit (and its subscriber fan-out) happens where the
  widgets live, serialised by the container's lock on that one loop;
- registers widget subscribers that go quiet once the app stops running and
  ignore NoMatches from queries against widgets that are not mounted yet.
"""

from __future__ import annotations

import logging

from textual.css.query import NoMatches

logger = logging.getLogger("statekeep.textual")


class AppBinding:
    """Connects one StateContainer to one Textual app."""

    __slots__ = ("_app", "_container", "_callbacks", "_disposed")

    def __init__(self, app, container) -> None:
        self._app = app
        self._container = container
        self._callbacks: list = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def set(self, setter):
        """Commit from a worker thread. Blocks until the app loop has run
        ``container.set(setter)``; returns its ``(new_state, prev_state)``.

        Textual raises RuntimeError if this is called on the app's own thread;
        there, ``await container.set(...)`` directly.
        """
        if self._disposed:
            raise RuntimeError("AppBinding is disposed")
        return self._app.call_from_thread(self._container.set, setter)

    def subscribe(self, fn, *, initial_call=True):
        """Register a widget-updating subscriber. Returns the registered wrapper."""

        def _deliver(new_state, prev_state, initial_state):
            if not self._app.is_running:
                return
            try:
                fn(new_state, prev_state, initial_state)
            except NoMatches:
                logger.debug("Skipped %r: widget not mounted", fn)

        self._callbacks.append(_deliver)
        self._container.subscribe(_deliver, initial_call=initial_call)
        return _deliver

    def dispose(self) -> None:
        """Unsubscribe everything this binding registered."""
        for cb in self._callbacks:
            self._container.unsubscribe(cb)
        self._callbacks.clear()
        self._disposed = True


def bind(app, container) -> AppBinding:
    """Bind container to app.

    Usage:
        class CounterApp(App):
            def on_mount(self):
                self.state = bind(self, counter)
                self.state.subscribe(
                    lambda new, prev, init: self.query_one("#count", Label).update(
                        str(new["count"])
                    )
                )
                self.run_worker(self.tick, thread=True)

            def tick(self):
                while True:
                    time.sleep(1)
                    self.state.set(lambda s, init: {"count": s["count"] + 1})
    """
    return AppBinding(app, container)
