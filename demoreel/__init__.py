"""
DemoReel package.

Intentionally avoids importing heavy submodules at package load time so that
Playwright and the OpenAI client are only loaded when the corresponding module
is explicitly imported.
"""

__version__ = "1.0.0"
