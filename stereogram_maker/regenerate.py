# (c) 2024 Niels Provos
#
"""
Run renders in the background, one at a time.

Interactive controls such as a disparity slider produce many requests in a
short time. The Regenerator keeps at most one request waiting: a new request
replaces the waiting one, and the render only starts once no new request has
arrived for the debounce interval. A render that already started always runs
to completion.
"""

import threading
import time


def print_failure(error, settings):
    print(f"Failed to regenerate the stereogram, keeping the previous output: {error}")


class Regenerator:
    def __init__(self, render_fn, on_result=None, on_error=None, debounce=0.0):
        """
        Starts the background render thread.

        Args:
            render_fn (callable): Called with a settings snapshot, returns the result.
            on_result (callable, optional): Called with (result, settings) after a successful render.
            on_error (callable, optional): Called with (error, settings) after a failed render.
                Defaults to printing a generic failure notice.
            debounce (float, optional): Seconds a request has to settle before it is rendered.
        """
        if debounce < 0:
            raise ValueError("debounce must be a non-negative number")
        self._render_fn = render_fn
        self._on_result = on_result
        self._on_error = on_error if on_error is not None else print_failure
        self.debounce = debounce

        self._condition = threading.Condition()
        self._pending = None
        self._pending_time = 0.0
        self._busy = False
        self._closed = False

        self.latest_result = None
        self.latest_error = None
        self.render_count = 0

        self._thread = threading.Thread(
            target=self._run, name="stereogram-regenerator", daemon=True
        )
        self._thread.start()

    @property
    def busy(self):
        with self._condition:
            return self._busy

    def request(self, settings):
        """
        Queues a render for the settings, replacing any render that has not started yet.

        The settings are copied so later changes by the caller do not leak into the render.
        """
        with self._condition:
            if self._closed:
                raise RuntimeError("The regenerator has been closed")
            self._pending = settings.copy()
            self._pending_time = time.monotonic()
            self._condition.notify_all()

    def _next_request(self):
        with self._condition:
            while self._pending is None and not self._closed:
                self._condition.wait()
            if self._pending is None:
                return None

            # wait for the request to settle; newer requests restart the wait
            while not self._closed:
                remaining = self._pending_time + self.debounce - time.monotonic()
                if remaining <= 0:
                    break
                self._condition.wait(remaining)

            settings = self._pending
            self._pending = None
            self._busy = True
            return settings

    @staticmethod
    def _notify(callback, value, settings):
        # a failing callback must not stop the worker
        try:
            callback(value, settings)
        except Exception as e:
            print(f"Regeneration callback {callback} failed: {e}")

    def _run(self):
        while True:
            settings = self._next_request()
            if settings is None:
                return

            try:
                try:
                    result = self._render_fn(settings)
                except Exception as e:
                    self.latest_error = e
                    self._notify(self._on_error, e, settings)
                else:
                    self.latest_result = result
                    self.latest_error = None
                    if self._on_result:
                        self._notify(self._on_result, result, settings)
            finally:
                with self._condition:
                    self._busy = False
                    self.render_count += 1
                    self._condition.notify_all()

    def wait_idle(self, timeout=None):
        """
        Waits until no render is running or waiting.

        Returns:
            bool: False if the timeout expired first.
        """
        with self._condition:
            return self._condition.wait_for(
                lambda: self._pending is None and not self._busy, timeout
            )

    def close(self, timeout=None):
        """Renders a waiting request, if any, and stops the background thread."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()
        self._thread.join(timeout)
