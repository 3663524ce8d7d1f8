# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for assembler.py: envelopes, section names, slices."""

from __future__ import annotations

import pytest

from elementormap import ConversionStats, ElementKind, ElementorElement
from elementormap.assembler import assemble_result, build_slice, section_id, section_name, wrap_envelope
from tests._convert_helpers import load


def _container(element_id: str) -> ElementorElement:
    return ElementorElement(id=element_id, el_type=ElementKind.CONTAINER, settings={"content_width": "full"})


class TestWrapEnvelope:
    def test_shape(self):
        envelope = wrap_envelope([_container("a")], "Título")
        assert envelope.to_dict() == {
            "version": "0.4",
            "title": "Título",
            "type": "page",
            "content": [
                {
                    "id": "a",
                    "elType": "container",
                    "isInner": False,
                    "settings": {"content_width": "full"},
                    "elements": [],
                }
            ],
        }

    def test_empty_content(self):
        envelope = wrap_envelope([], "Vazio")
        assert envelope.content == []
        assert envelope.to_dict()["content"] == []

    def test_custom_version(self):
        assert wrap_envelope([], "x", version="0.5").version == "0.5"


class TestSectionNames:
    @pytest.mark.parametrize(
        ("tag", "expected"),
        [
            ("header", "Cabeçalho"),
            ("footer", "Rodapé"),
            ("nav", "Menu de Navegação"),
            ("section", "Sessão"),
            ("article", "Artigo"),
            ("aside", "Lateral (Aside)"),
            ("div", "Container"),
            ("form", "Container"),
        ],
    )
    def test_names_by_tag(self, tag, expected):
        el = load(f"<{tag}></{tag}>").root_nodes[0]
        assert section_name(el) == expected

    def test_id_appended(self):
        el = load('<header id="top"></header>').root_nodes[0]
        assert section_name(el) == "Cabeçalho (top)"

    def test_blank_id_ignored(self):
        el = load('<footer id="  "></footer>').root_nodes[0]
        assert section_name(el) == "Rodapé"
        assert section_id(el, 4) == "section-4"

    def test_section_id_prefers_html_id(self):
        el = load('<section id="pricing"></section>').root_nodes[0]
        assert section_id(el, 1) == "pricing"


class TestSlices:
    def test_slice_wraps_single_root(self):
        el = load('<nav id="menu"></nav>').root_nodes[0]
        element = _container("n1")
        section = build_slice(el, element, 1)
        assert section.name == "Menu de Navegação (menu)"
        assert section.id == "menu"
        assert section.json_content.title == section.name
        assert section.json_content.content == [element]

    def test_assemble_result(self):
        nodes = load("<header></header><section></section>").root_nodes
        built = [(nodes[0], _container("h")), (nodes[1], _container("s"))]
        stats = ConversionStats(widgets=0, sections=2)
        result = assemble_result(built, stats, title="Site Completo AI")

        assert result.full_site.title == "Site Completo AI"
        assert [e.id for e in result.full_site.content] == ["h", "s"]
        assert [s.id for s in result.sections] == ["section-1", "section-2"]
        assert [s.name for s in result.sections] == ["Cabeçalho", "Sessão"]
        for section, root in zip(result.sections, result.full_site.content, strict=True):
            assert section.json_content.content == [root]
        assert result.stats is stats

    def test_result_to_dict(self):
        nodes = load("<footer></footer>").root_nodes
        result = assemble_result([(nodes[0], _container("f"))], ConversionStats(sections=1))
        data = result.to_dict()
        assert set(data) == {"full_site", "sections", "stats"}
        assert data["stats"] == {"widgets": 0, "sections": 1, "customCssInjected": False}
        assert data["sections"][0]["json_content"]["content"][0]["id"] == "f"
