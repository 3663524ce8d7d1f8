# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Document loader: markup string → detached lxml tree.

The tree only exists for structural and computed-style inspection. It is
never rendered, and :func:`load_document` releases it on every exit path,
including when classification raises.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

import lxml.html
from lxml import etree

from elementormap.config import DEFAULT_VIEWPORT_WIDTH

logger = logging.getLogger(__name__)


def element_tag(el) -> str:
    """Lower-case tag name, or "" for comments / processing instructions."""
    return el.tag.lower() if isinstance(el.tag, str) else ""


def element_children(el) -> list[lxml.html.HtmlElement]:
    """Direct child elements in document order (comments and PIs skipped)."""
    return [child for child in el if isinstance(child.tag, str)]


def body_elements(body) -> list[lxml.html.HtmlElement]:
    """Every element below *body* in document order, like ``body.querySelectorAll('*')``."""
    return [el for el in body.iter() if el is not body and isinstance(el.tag, str)]


def parse_markup(html: str) -> lxml.html.HtmlElement | None:
    """Parse *html* into an lxml document. Returns None for empty documents."""
    if not html or not html.strip():
        return None
    parser = lxml.html.HTMLParser(recover=True, encoding="utf-8")
    try:
        return lxml.html.document_fromstring(html.encode("utf-8"), parser=parser)
    except etree.ParserError:
        # libxml2 reports "Document is empty" for comment-only input
        logger.debug("Markup parsed to an empty document")
        return None


@dataclass
class LoadedDocument:
    """A parsed document plus the viewport it is inspected at."""

    doc: lxml.html.HtmlElement | None
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH
    root_nodes: list[lxml.html.HtmlElement] = field(default_factory=list)
    disposed: bool = False

    @property
    def body(self) -> lxml.html.HtmlElement | None:
        if self.doc is None:
            return None
        body = self.doc.body
        return body if body is not None else self.doc

    def dispose(self) -> None:
        """Drop every reference to the tree. Idempotent."""
        self.root_nodes = []
        self.doc = None
        self.disposed = True


@contextmanager
def load_document(html: str, *, viewport_width: int = DEFAULT_VIEWPORT_WIDTH) -> Iterator[LoadedDocument]:
    """Parse *html* and yield its body-level children, disposing the tree on exit.

    The viewport width travels with the document so that style resolution
    (media queries, browser layout) is evaluated at the desktop width
    regardless of the machine running the conversion.
    """
    loaded = LoadedDocument(doc=parse_markup(html), viewport_width=viewport_width)
    body = loaded.body
    if body is not None:
        loaded.root_nodes = element_children(body)
    logger.debug("Loaded document: %d top-level nodes (viewport=%dpx)", len(loaded.root_nodes), viewport_width)
    try:
        yield loaded
    finally:
        loaded.dispose()
