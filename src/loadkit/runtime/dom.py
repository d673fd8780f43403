# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""Small helpers over the `Document` protocol."""

from collections.abc import Mapping
from typing import Any

from ..api.document import Document, Element


def create_element(document: Document, tag: str, props: Mapping[str, Any] | None = None) -> Element:
    """Create a `tag` element and apply `props` to it as attributes."""
    el = document.create_element(tag)
    for name, value in (props or {}).items():
        setattr(el, name, value)
    return el


def append_to_singleton(document: Document, tag_name: str, child: Element) -> None:
    """
    Append `child` to the document's single `tag_name` container ("head" or "body").

    Uses the document attribute of that name when exposed, otherwise the first
    element found by tag name.
    """
    container = getattr(document, tag_name, None)
    if container is None:
        found = document.get_elements_by_tag_name(tag_name)
        if not found:
            raise LookupError(f"document has no <{tag_name}> element")
        container = found[0]
    container.append_child(child)
