from .dom import FakeDocument, FakeElement, FakeStyle, FakeWindow, ScriptBehavior, define

__all__ = [
    "FakeDocument",
    "FakeElement",
    "FakeStyle",
    "FakeWindow",
    "ScriptBehavior",
    "define",
]
