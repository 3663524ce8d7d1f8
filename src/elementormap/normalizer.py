# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Root normalization: expose the real section boundaries at the top level."""

from __future__ import annotations

import logging

from elementormap.loader import element_children, element_tag

logger = logging.getLogger(__name__)

# Tags with no visual semantics. Dropped at the root and at any depth.
NON_VISUAL_TAGS = frozenset({"script", "style", "link", "meta", "noscript", "template", "title", "base"})

# Generic wrappers that AI-generated pages put around the whole site
GENERIC_WRAPPER_TAGS = frozenset({"div", "main"})


def is_visual(el) -> bool:
    tag = element_tag(el)
    return bool(tag) and tag not in NON_VISUAL_TAGS


def normalize_roots(nodes) -> list:
    """Strip non-visual nodes and unwrap a single generic wrapper (one level only)."""
    roots = [el for el in nodes if is_visual(el)]
    if len(roots) == 1 and element_tag(roots[0]) in GENERIC_WRAPPER_TAGS:
        wrapper = roots[0]
        roots = [el for el in element_children(wrapper) if is_visual(el)]
        logger.debug("Unwrapped single <%s> root into %d sections", element_tag(wrapper), len(roots))
    return roots
