import os
import tempfile

# Keep settings from creating output folders inside the checkout
os.environ.setdefault("DEMOREEL_OUTPUT_DIR", tempfile.mkdtemp(prefix="demoreel-test-"))

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from demoreel.diagnostics import StepResult


class FakeClock:
    """Monotonic clock that only moves when sleep() is awaited."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeElement:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    async def bounding_box(self):
        return self.page.elements.get(self.selector)


class FakePage:
    """Just enough of playwright's Page for the overlay and executor."""

    def __init__(self, elements=None, url="about:blank"):
        self.elements = dict(elements or {})
        self.url = url
        self.closed = False
        self.calls = []
        self.evaluations = []
        self.failures = {}

    def is_closed(self):
        return self.closed

    def _check(self, name):
        if self.closed:
            raise PlaywrightError("Target page, context or browser has been closed")
        if name in self.failures:
            raise self.failures[name]

    async def add_script_tag(self, path=None, content=None):
        self._check("add_script_tag")
        self.calls.append(("add_script_tag", path))

    async def evaluate(self, expression, arg=None):
        self._check("evaluate")
        self.evaluations.append((expression, arg))

    async def query_selector(self, selector):
        self._check("query_selector")
        if selector in self.elements:
            return FakeElement(self, selector)
        return None

    async def wait_for_selector(self, selector, state=None, timeout=None):
        self._check("wait_for_selector")
        if selector not in self.elements:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def click(self, selector, timeout=None):
        self._check("click")
        self.calls.append(("click", selector))

    async def hover(self, selector, timeout=None):
        self._check("hover")
        self.calls.append(("hover", selector))

    async def fill(self, selector, value, timeout=None):
        self._check("fill")
        self.calls.append(("fill", selector, value))

    async def goto(self, url, wait_until=None, timeout=None):
        self._check("goto")
        self.calls.append(("goto", url))
        self.url = url

    def drawn_frames(self):
        return [arg for expr, arg in self.evaluations if "draw" in expr]


class FakeExecutor:
    def __init__(self):
        self.actions = []

    async def run(self, action):
        self.actions.append(action)
        return StepResult.ok("action", action.type.value, action.selector)


class FakeOverlay:
    color = "#ff0000"

    def __init__(self):
        self.runs = []
        self.attached_to = []

    async def attach(self, page):
        self.attached_to.append(page)

    async def run(self, style, selector, options=None):
        self.runs.append((style, selector, options))
        return StepResult.ok("overlay", style.value, selector)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def page():
    return FakePage(elements={
        "#cta": {"x": 200, "y": 120, "width": 100, "height": 40},
        "#email": {"x": 40, "y": 300, "width": 240, "height": 32},
    })
