import threading
import time
import unittest
from unittest.mock import patch

from .errors import InvalidDimension
from .regenerate import Regenerator
from .settings import StereogramSettings


class RecordingRenderer:
    """Records the settings it renders and can block until released."""

    def __init__(self, block=False):
        self.rendered = []
        self.active = 0
        self.max_active = 0
        self.started = threading.Event()
        self.release = threading.Event()
        if not block:
            self.release.set()
        self._lock = threading.Lock()

    def __call__(self, settings):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.started.set()
        self.release.wait(5)
        with self._lock:
            self.active -= 1
            self.rendered.append(settings.disparity_scale)
        return settings.disparity_scale


class TestRegenerator(unittest.TestCase):
    def test_renders_request(self):
        renderer = RecordingRenderer()
        results = []
        regenerator = Regenerator(
            renderer, on_result=lambda result, settings: results.append(result)
        )
        regenerator.request(StereogramSettings(disparity_scale=0.5))
        self.assertTrue(regenerator.wait_idle(5))
        regenerator.close(5)

        self.assertEqual(renderer.rendered, [0.5])
        self.assertEqual(results, [0.5])
        self.assertEqual(regenerator.latest_result, 0.5)

    def test_newer_request_supersedes_queued(self):
        renderer = RecordingRenderer(block=True)
        regenerator = Regenerator(renderer)

        regenerator.request(StereogramSettings(disparity_scale=0.5))
        self.assertTrue(renderer.started.wait(5))

        # the first render is in flight; these queue up and replace each other
        for scale in [0.6, 0.7, 0.8]:
            regenerator.request(StereogramSettings(disparity_scale=scale))

        renderer.release.set()
        self.assertTrue(regenerator.wait_idle(5))
        regenerator.close(5)

        self.assertEqual(renderer.rendered, [0.5, 0.8])
        self.assertEqual(renderer.max_active, 1)

    def test_debounce_coalesces_rapid_requests(self):
        renderer = RecordingRenderer()
        regenerator = Regenerator(renderer, debounce=0.2)

        for scale in [0.2, 0.4, 0.6, 0.8, 1.0]:
            regenerator.request(StereogramSettings(disparity_scale=scale))
            time.sleep(0.01)

        self.assertTrue(regenerator.wait_idle(5))
        regenerator.close(5)
        self.assertEqual(renderer.rendered, [1.0])

    def test_request_uses_snapshot(self):
        renderer = RecordingRenderer(block=True)
        regenerator = Regenerator(renderer)

        settings = StereogramSettings(disparity_scale=0.5)
        regenerator.request(settings)
        settings.disparity_scale = 1.5

        renderer.release.set()
        self.assertTrue(regenerator.wait_idle(5))
        regenerator.close(5)
        self.assertEqual(renderer.rendered, [0.5])

    def test_error_keeps_previous_result(self):
        errors = []

        def render(settings):
            if settings.disparity_scale > 1:
                raise InvalidDimension("too large")
            return "frame"

        regenerator = Regenerator(
            render, on_error=lambda error, settings: errors.append(error)
        )
        regenerator.request(StereogramSettings(disparity_scale=0.5))
        self.assertTrue(regenerator.wait_idle(5))
        regenerator.request(StereogramSettings(disparity_scale=1.5))
        self.assertTrue(regenerator.wait_idle(5))

        self.assertEqual(regenerator.latest_result, "frame")
        self.assertIsInstance(regenerator.latest_error, InvalidDimension)
        self.assertEqual(len(errors), 1)

        # the worker keeps running after a failure
        regenerator.request(StereogramSettings(disparity_scale=0.7))
        self.assertTrue(regenerator.wait_idle(5))
        self.assertIsNone(regenerator.latest_error)
        self.assertEqual(regenerator.render_count, 3)
        regenerator.close(5)

    def test_unexpected_error_keeps_worker_alive(self):
        errors = []

        def render(settings):
            if settings.disparity_scale > 1:
                raise RuntimeError("backend failed")
            return settings.disparity_scale

        regenerator = Regenerator(
            render, on_error=lambda error, settings: errors.append(error)
        )
        regenerator.request(StereogramSettings(disparity_scale=1.5))
        self.assertTrue(regenerator.wait_idle(5))
        self.assertIsInstance(regenerator.latest_error, RuntimeError)

        regenerator.request(StereogramSettings(disparity_scale=0.5))
        self.assertTrue(regenerator.wait_idle(5))
        self.assertEqual(regenerator.latest_result, 0.5)
        self.assertEqual(len(errors), 1)
        regenerator.close(5)

    def test_failing_callbacks_keep_worker_alive(self):
        def fail(value, settings):
            raise RuntimeError("callback failed")

        def render(settings):
            if settings.disparity_scale > 1:
                raise InvalidDimension("too large")
            return settings.disparity_scale

        regenerator = Regenerator(render, on_result=fail, on_error=fail)
        with patch("builtins.print"):
            for scale in [0.5, 1.5, 0.7]:
                regenerator.request(StereogramSettings(disparity_scale=scale))
                self.assertTrue(regenerator.wait_idle(5))

        self.assertEqual(regenerator.render_count, 3)
        self.assertEqual(regenerator.latest_result, 0.7)
        regenerator.close(5)

    def test_closed_rejects_requests(self):
        regenerator = Regenerator(RecordingRenderer())
        regenerator.close(5)
        with self.assertRaises(RuntimeError):
            regenerator.request(StereogramSettings())

    def test_exported_from_package(self):
        from . import __all__, Regenerator as exported

        self.assertIs(exported, Regenerator)
        self.assertIn("Regenerator", __all__)

    def test_invalid_debounce(self):
        with self.assertRaises(ValueError):
            Regenerator(RecordingRenderer(), debounce=-1)


if __name__ == "__main__":
    unittest.main()
