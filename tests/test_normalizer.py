# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for normalizer.py: non-visual stripping and one-level unwrap."""

from __future__ import annotations

import pytest

from elementormap.loader import element_tag
from elementormap.normalizer import GENERIC_WRAPPER_TAGS, NON_VISUAL_TAGS, is_visual, normalize_roots
from tests._convert_helpers import load


def _roots(markup: str) -> list[str]:
    loaded = load(markup)
    return [element_tag(el) for el in normalize_roots(loaded.root_nodes)]


class TestNonVisual:
    @pytest.mark.parametrize("tag", ["script", "style", "meta", "link"])
    def test_core_non_visual_tags(self, tag):
        assert tag in NON_VISUAL_TAGS

    def test_strips_scripts_between_sections(self):
        assert _roots("<header></header><script>var a;</script><footer></footer>") == ["header", "footer"]

    def test_is_visual(self):
        loaded = load("<section></section>")
        assert is_visual(loaded.root_nodes[0])


class TestUnwrap:
    @pytest.mark.parametrize("wrapper", sorted(GENERIC_WRAPPER_TAGS))
    def test_single_generic_wrapper_is_unwrapped(self, wrapper):
        markup = f"<{wrapper}><section></section><section></section><section></section></{wrapper}>"
        assert _roots(markup) == ["section", "section", "section"]

    def test_unwrap_is_one_level_only(self):
        markup = "<div><div><section></section><section></section></div></div>"
        assert _roots(markup) == ["div"]

    def test_semantic_single_root_is_kept(self):
        assert _roots("<section><div></div><div></div></section>") == ["section"]

    def test_two_wrappers_are_kept(self):
        assert _roots("<div><p>a</p></div><div><p>b</p></div>") == ["div", "div"]

    def test_non_visual_siblings_do_not_block_unwrap(self):
        markup = "<script>x()</script><div><header></header><footer></footer></div>"
        assert _roots(markup) == ["header", "footer"]

    def test_non_visual_children_dropped_after_unwrap(self):
        markup = "<main><style>.x{}</style><header></header><footer></footer></main>"
        assert _roots(markup) == ["header", "footer"]

    def test_empty_wrapper(self):
        assert _roots("<div></div>") == []
