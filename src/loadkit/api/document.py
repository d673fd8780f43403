# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Document environment protocol.

The loader never renders or executes anything itself. It asks a document to
create elements, appends them to the singleton `head`/`body` containers and
listens for the `load`/`error` signals the environment fires once the element
has been processed. Browser bridges, headless drivers and test fakes all
implement these protocols.
"""

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

EventCallback = Callable[[Any], None]


@runtime_checkable
class Element(Protocol):
    """
    An element created by the document.

    Arbitrary properties (`href`, `src`, `rel`, ...) are applied with `setattr`.
    Stylesheet elements expose `style`, which stays falsy until the
    environment has parsed the stylesheet.
    """

    def append_child(self, child: Element) -> Any: ...
    def add_event_listener(self, event: str, callback: EventCallback) -> None: ...


@runtime_checkable
class Document(Protocol):
    """
    Minimal document surface used by the injectors.

    Implementations may also expose `head` and `body` attributes directly;
    when absent, the first element returned by `get_elements_by_tag_name()`
    is used.
    """

    def create_element(self, tag: str) -> Element: ...
    def get_elements_by_tag_name(self, tag: str) -> Sequence[Element]: ...
