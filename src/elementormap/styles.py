# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Computed-style resolution, injected into the classifier as a capability.

The classifier only ever asks "what is the computed style of this node?".
Two answers are provided:

- StaticStyleResolver: headless cascade over the document's own <style>
  blocks and inline styles (cssutils parsing + lxml cssselect matching),
  evaluated at the configured viewport width. Custom properties and
  ``var()`` are substituted per element, ``@media``/``@supports``/``@layer``
  blocks are unwrapped when they apply.
- SnapshotStyleResolver: pre-computed style maps, as produced by a real
  browser (see browser_styles) or by test fixtures.

Both return values in browser-computed notation (``rgb()``/``rgba()``
colors, ``0px`` radii) so the extractor's comparisons behave the same
whichever resolver is used.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

import cssselect
import cssutils
from lxml.cssselect import CSSSelector
from PIL import ImageColor

from elementormap.loader import LoadedDocument, body_elements, element_tag

logger = logging.getLogger(__name__)

TRANSPARENT = "rgba(0, 0, 0, 0)"

# Attribute the browser snapshot stamps on every body element (value = snapshot index)
SNAPSHOT_INDEX_ATTR = "data-elementormap-idx"

# CSS initial values for every property the classifier/extractor reads
_INITIAL_VALUES = {
    "flex-direction": "row",
    "flex-wrap": "nowrap",
    "background-color": TRANSPARENT,
    "background-image": "none",
    "box-shadow": "none",
    "backdrop-filter": "none",
    "border-radius": "0px",
    "color": "rgb(0, 0, 0)",
}

_INHERITED_PROPERTIES = frozenset({"color"})

# Properties whose support an ``@supports (prop: value)`` test is checked against
_SUPPORTED_PROPERTIES = frozenset(
    {*_INITIAL_VALUES, "display", "background", "flex-flow", "gap", "grid-template-columns", "-webkit-backdrop-filter"}
)

_INLINE_DISPLAY_TAGS = frozenset(
    {"a", "abbr", "b", "code", "em", "i", "img", "label", "small", "span", "strong", "sub", "sup", "u"}
)
_INLINE_BLOCK_DISPLAY_TAGS = frozenset({"button", "input", "select", "textarea"})

_FLEX_DIRECTIONS = frozenset({"row", "row-reverse", "column", "column-reverse"})
_FLEX_WRAPS = frozenset({"nowrap", "wrap", "wrap-reverse"})
_KEYWORD_PROPERTIES = frozenset({"display", "flex-direction", "flex-wrap"})

_COLOR_TOKEN_RE = re.compile(
    r"(?:rgba?|hsla?)\([^)]*\)|#[0-9a-fA-F]{3,8}\b|(?<![\w#.-])[a-zA-Z]+(?![\w(-])", re.IGNORECASE
)
_COLOR_ARG_SPLIT_RE = re.compile(r"[\s,]+")
_GRADIENT_START_RE = re.compile(r"(?:repeating-)?(?:linear|radial|conic)-gradient\(", re.IGNORECASE)
_URL_START_RE = re.compile(r"url\(", re.IGNORECASE)
_VAR_START_RE = re.compile(r"var\(", re.IGNORECASE)
_ZERO_LENGTH_RE = re.compile(r"^0(?:\.0+)?(?:px|%|em|rem)?$")
_MEDIA_WIDTH_RE = re.compile(r"\(\s*(min|max)-width\s*:\s*([\d.]+)\s*(px|em|rem)?\s*\)")
_SUPPORTS_NOT_RE = re.compile(r"(?:^|[\s(])not[\s(]", re.IGNORECASE)
_SUPPORTS_FEATURE_RE = re.compile(r"\(\s*(-{0,2}[a-zA-Z][\w-]*)\s*:")

_MAX_VAR_DEPTH = 32


# ── Color / value normalization ───────────────────────────────────────


def _format_rgb(r: float, g: float, b: float, alpha: float | None = None) -> str:
    r, g, b = (max(0, min(255, round(c))) for c in (r, g, b))
    if alpha is None or alpha >= 1:
        return f"rgb({r}, {g}, {b})"
    alpha = max(0.0, round(alpha, 2))
    return f"rgba({r}, {g}, {b}, {alpha:g})"


def _parse_alpha(raw: str | None) -> float | None:
    if not raw:
        return None
    if raw.endswith("%"):
        return float(raw[:-1]) / 100
    return float(raw)


def _channel(raw: str) -> float:
    if raw.endswith("%"):
        return float(raw[:-1]) * 2.55
    return float(raw)


def _percent(raw: str) -> float:
    return round(max(0.0, min(100.0, float(raw.rstrip("%")))), 3)


def _function_color(name: str, args: str) -> str:
    """``rgb()``/``rgba()``/``hsl()``/``hsla()`` in comma or space syntax.

    Raises:
        ValueError: the arguments do not form a color.
    """
    body, _, alpha_raw = args.partition("/")
    parts = [p for p in _COLOR_ARG_SPLIT_RE.split(body.strip()) if p]
    if not alpha_raw and len(parts) == 4:
        alpha_raw = parts.pop()
    if len(parts) != 3:
        raise ValueError(f"expected three color channels in {args!r}")
    alpha = _parse_alpha(alpha_raw.strip())
    if name.startswith("rgb"):
        r, g, b = (_channel(p) for p in parts)
    else:
        hue = round(float(parts[0].removesuffix("deg")) % 360, 3)
        r, g, b = ImageColor.getrgb(f"hsl({hue:g}, {_percent(parts[1]):g}%, {_percent(parts[2]):g}%)")
    return _format_rgb(r, g, b, alpha)


def color_token(token: str) -> str | None:
    """Canonical ``rgb()``/``rgba()`` form of one CSS color token, None if it is not a color."""
    low = token.strip().lower()
    if low == "transparent":
        return TRANSPARENT
    if "(" in low:
        name, _, args = low.partition("(")
        try:
            return _function_color(name, args.rstrip(")"))
        except (ValueError, OverflowError):
            return None
    if not low.startswith("#") and low not in ImageColor.colormap:
        return None
    try:
        rgb = ImageColor.getrgb(low)
    except ValueError:
        return None
    alpha = rgb[3] / 255 if len(rgb) == 4 else None
    return _format_rgb(rgb[0], rgb[1], rgb[2], alpha)


def _replace_colors(text: str) -> str:
    return _COLOR_TOKEN_RE.sub(lambda m: color_token(m.group(0)) or m.group(0), text)


def normalize_color(value: str) -> str:
    """Rewrite every color token in *value* to browser-computed notation.

    ``url(...)`` arguments are copied verbatim.
    """
    text = value.strip()
    out: list[str] = []
    pos = 0
    for start, end in _function_spans(text, _URL_START_RE):
        out.append(_replace_colors(text[pos:start]))
        out.append(text[start:end])
        pos = end
    out.append(_replace_colors(text[pos:]))
    return "".join(out)


def normalize_radius(value: str) -> str:
    parts = value.replace("/", " ").split()
    if parts and all(_ZERO_LENGTH_RE.match(p) for p in parts):
        return "0px"
    return value.strip()


def _function_spans(value: str, start_re: re.Pattern) -> list[tuple[int, int]]:
    """(start, end) spans of balanced function calls such as ``linear-gradient(...)``."""
    spans: list[tuple[int, int]] = []
    for m in start_re.finditer(value):
        if spans and m.start() < spans[-1][1]:
            continue  # nested inside a previous call
        depth = 0
        for idx in range(m.end() - 1, len(value)):
            if value[idx] == "(":
                depth += 1
            elif value[idx] == ")":
                depth -= 1
                if depth == 0:
                    spans.append((m.start(), idx + 1))
                    break
    return spans


def expand_background(value: str) -> dict[str, str]:
    """Split the ``background`` shorthand into background-color / background-image."""
    images = [value[s:e] for s, e in _function_spans(value, _GRADIENT_START_RE)]
    images += [value[s:e] for s, e in _function_spans(value, _URL_START_RE)]
    remainder = value
    for image in images:
        remainder = remainder.replace(image, " ")

    color = TRANSPARENT
    for token in _COLOR_TOKEN_RE.findall(remainder):
        canonical = color_token(token)
        if canonical is not None:
            color = canonical
    return {
        "background-color": color,
        "background-image": ", ".join(normalize_color(i) for i in images) if images else "none",
    }


def expand_flex_flow(value: str) -> dict[str, str]:
    """Split the ``flex-flow`` shorthand; an omitted half resets to its initial value."""
    expanded = {"flex-direction": _INITIAL_VALUES["flex-direction"], "flex-wrap": _INITIAL_VALUES["flex-wrap"]}
    for token in value.lower().split():
        if token in _FLEX_DIRECTIONS:
            expanded["flex-direction"] = token
        elif token in _FLEX_WRAPS:
            expanded["flex-wrap"] = token
    return expanded


def substitute_vars(value: str, variables: Mapping[str, str], _depth: int = 0) -> str | None:
    """Replace every ``var(--name[, fallback])`` in *value*.

    Returns None when a reference has neither a value nor a fallback, or
    when references nest deeper than a cycle-safe limit; the declaration
    is then invalid at computed-value time.
    """
    spans = _function_spans(value, _VAR_START_RE)
    if not spans:
        return value
    if _depth > _MAX_VAR_DEPTH:
        return None
    out: list[str] = []
    pos = 0
    for start, end in spans:
        name, comma, fallback = value[start + 4 : end - 1].partition(",")
        replacement = variables.get(name.strip().lower())
        if replacement is None:
            if not comma:
                return None
            replacement = fallback.strip()
        replacement = substitute_vars(replacement, variables, _depth + 1)
        if replacement is None:
            return None
        out.append(value[pos:start])
        out.append(replacement)
        pos = end
    out.append(value[pos:])
    return "".join(out)


def _normalize_declaration(name: str, value: str) -> dict[str, str]:
    if name == "background":
        return expand_background(value)
    if name == "flex-flow":
        return expand_flex_flow(value)
    if name == "border-radius":
        return {name: normalize_radius(value)}
    if name in ("color", "background-color", "box-shadow", "background-image"):
        return {name: normalize_color(value)}
    if name in _KEYWORD_PROPERTIES:
        return {name: value.strip().lower()}
    if name == "-webkit-backdrop-filter":
        return {"backdrop-filter": value.strip()}
    return {name: value.strip()}


# ── ComputedStyle ─────────────────────────────────────────────────────


def _default_display(tag: str) -> str:
    if tag in _INLINE_DISPLAY_TAGS:
        return "inline"
    if tag in _INLINE_BLOCK_DISPLAY_TAGS:
        return "inline-block"
    return "block"


class ComputedStyle(Mapping[str, str]):
    """Read-only kebab-case property → computed value map.

    Properties that were never declared read as their CSS initial value.
    """

    __slots__ = ("_values", "_tag")

    def __init__(self, values: Mapping[str, str] | None = None, *, tag: str = "") -> None:
        self._values = {k: v for k, v in (values or {}).items() if v is not None}
        self._tag = tag

    def __getitem__(self, name: str) -> str:
        if name in self._values:
            return self._values[name]
        if name == "display":
            return _default_display(self._tag)
        return _INITIAL_VALUES[name]

    def __iter__(self) -> Iterator[str]:
        yield from self._values
        for name in ("display", *_INITIAL_VALUES):
            if name not in self._values:
                yield name

    def __len__(self) -> int:
        return len(set(self._values) | {"display"} | set(_INITIAL_VALUES))

    def __repr__(self) -> str:
        return f"ComputedStyle({self._values!r}, tag={self._tag!r})"


class StyleResolver(Protocol):
    """Capability: source node → resolved computed style."""

    def resolve(self, el) -> ComputedStyle: ...


ResolverFactory = Callable[[LoadedDocument], StyleResolver]


# ── Static cascade ────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class _Declaration:
    name: str
    value: str
    important: bool

    @property
    def is_custom_property(self) -> bool:
        return self.name.startswith("--")


def media_matches(media_text: str, viewport_width: int) -> bool:
    """Evaluate a media query list against a screen of *viewport_width* px."""
    for query in media_text.lower().split(","):
        query = query.strip()
        if not query or query.startswith("not "):
            continue
        media_type = query.split("(", 1)[0].replace("only", "").replace("and", "").strip()
        if media_type not in ("", "all", "screen"):
            continue
        ok = True
        for kind, number, unit in _MEDIA_WIDTH_RE.findall(query):
            px = float(number) * (16 if unit in ("em", "rem") else 1)
            if (kind == "min" and viewport_width < px) or (kind == "max" and viewport_width > px):
                ok = False
                break
        if ok:
            return True
    return False


def supports_matches(condition: str) -> bool:
    """Evaluate an ``@supports`` condition for a current Chromium.

    Negated conditions fail. Feature tests pass when they name a property
    read during classification; ``selector()`` and other non-property
    tests pass.
    """
    if _SUPPORTS_NOT_RE.search(condition):
        return False
    features = _SUPPORTS_FEATURE_RE.findall(condition)
    return not features or any(f.lower() in _SUPPORTED_PROPERTIES for f in features)


def _split_at_rule(css_text: str, keyword: str) -> tuple[str, str]:
    """(prelude, block body) of a serialized block at-rule."""
    head, _, rest = css_text.partition("{")
    body, _, _ = rest.rpartition("}")
    return head.strip()[len(keyword) :].strip(), body


def _declarations(style) -> list[_Declaration]:
    """Raw declarations of a cssutils CSSStyleDeclaration, in source order."""
    out: list[_Declaration] = []
    for prop in style:
        value = prop.value.strip()
        if value:
            out.append(_Declaration(prop.name.lower(), value, prop.priority == "important"))
    return out


def _specificity(selector_text: str) -> tuple[int, int, int]:
    parsed = cssselect.parse(selector_text)
    return max(sel.specificity() for sel in parsed) if parsed else (0, 0, 0)


class StaticStyleResolver:
    """Headless cascade: <style> blocks + inline styles, no rendering surface."""

    def __init__(self, document: LoadedDocument) -> None:
        self._viewport_width = document.viewport_width
        # Elements are kept as dict keys, which also keeps their lxml proxies alive
        self._matched: dict = {}
        self._cache: dict = {}
        self._rule_count = 0
        if document.doc is not None:
            self._collect(document.doc)

    def _collect(self, doc) -> None:
        order = 0
        for style_el in doc.iter("style"):
            css_text = style_el.text_content() or ""
            if not css_text.strip():
                continue
            sheet = cssutils.parseString(css_text, validate=False)
            for rule in self._flatten(sheet.cssRules):
                decls = _declarations(rule.style)
                if not decls:
                    continue
                for selector in rule.selectorList:
                    order += 1
                    self._match(doc, selector.selectorText, decls, order)
        logger.debug("Static cascade: %d selectors applied", self._rule_count)

    def _flatten(self, rules):
        for rule in rules:
            if rule.type == rule.STYLE_RULE:
                yield rule
            elif rule.type == rule.MEDIA_RULE:
                if media_matches(rule.media.mediaText, self._viewport_width):
                    yield from self._flatten(rule.cssRules)
            elif rule.type == rule.UNKNOWN_RULE and rule.atkeyword in ("@supports", "@layer"):
                # cssutils keeps these as unknown at-rules with the nested block as text
                condition, body = _split_at_rule(rule.cssText, rule.atkeyword)
                if rule.atkeyword == "@supports" and not supports_matches(condition):
                    logger.debug("Skipping @supports %s", condition)
                    continue
                if body.strip():
                    yield from self._flatten(cssutils.parseString(body, validate=False).cssRules)
            elif rule.type != rule.COMMENT:
                logger.debug("Skipping %s %s", rule.typeString, getattr(rule, "atkeyword", ""))

    def _match(self, doc, selector_text: str, decls: list[_Declaration], order: int) -> None:
        try:
            matcher = CSSSelector(selector_text, translator="html")
            specificity = _specificity(selector_text)
        except (cssselect.SelectorError, cssselect.ExpressionError) as e:
            # :hover, ::before and friends have no computed-style meaning here
            logger.debug("Skipping selector %r: %s", selector_text, e)
            return
        self._rule_count += 1
        for el in matcher(doc):
            self._matched.setdefault(el, []).append((specificity, order, decls))

    def _cascade(self, el) -> list[_Declaration]:
        """Declarations applying to *el*, lowest priority first."""
        # (important, inline, specificity, order): later sort keys win
        candidates: list[tuple[tuple, _Declaration]] = []
        for specificity, order, decls in self._matched.get(el, ()):
            for decl in decls:
                candidates.append(((decl.important, False, specificity, order), decl))
        inline = el.get("style")
        if inline:
            for decl in _declarations(cssutils.parseStyle(inline, validate=False)):
                candidates.append(((decl.important, True, (0, 0, 0), 0), decl))
        candidates.sort(key=lambda item: item[0])
        return [decl for _, decl in candidates]

    def _resolve_with_variables(self, el) -> tuple[ComputedStyle, dict[str, str]]:
        cached = self._cache.get(el)
        if cached is not None:
            return cached

        parent = el.getparent()
        parent_style, parent_vars = self._resolve_with_variables(parent) if parent is not None else (None, {})
        cascade = self._cascade(el)

        # Custom properties always inherit; own values are substituted in their own scope
        own = {d.name: d.value for d in cascade if d.is_custom_property}
        scope = {**parent_vars, **own}
        variables = dict(parent_vars)
        for name, raw in own.items():
            substituted = substitute_vars(raw, scope)
            if substituted is None:
                variables.pop(name, None)
            else:
                variables[name] = substituted

        values: dict[str, str] = {}
        for decl in cascade:
            if decl.is_custom_property:
                continue
            value = substitute_vars(decl.value, variables)
            if value is None:
                logger.debug("Unresolved var() in %s: %s", decl.name, decl.value)
                value = "unset"
            values.update(_normalize_declaration(decl.name, value))

        for name, value in list(values.items()):
            low = value.lower()
            if low == "inherit" and parent_style is not None:
                inherited = parent_style.get(name)
                if inherited is None:
                    del values[name]
                else:
                    values[name] = inherited
            elif low in ("inherit", "initial", "unset", "revert"):
                del values[name]
        for name in _INHERITED_PROPERTIES:
            if name not in values and parent_style is not None:
                values[name] = parent_style[name]

        resolved = (ComputedStyle(values, tag=element_tag(el)), variables)
        self._cache[el] = resolved
        return resolved

    def resolve(self, el) -> ComputedStyle:
        return self._resolve_with_variables(el)[0]


# ── Pre-computed snapshots ────────────────────────────────────────────


class SnapshotStyleResolver:
    """Serve style maps captured elsewhere.

    Body elements carrying ``SNAPSHOT_INDEX_ATTR`` are matched by that index
    and the marker is removed. Marker-free documents (hand-built fixtures)
    are matched by document order.
    """

    def __init__(
        self,
        styles: Sequence[Mapping[str, str]],
        document: LoadedDocument,
        *,
        tags: Sequence[str] | None = None,
    ) -> None:
        self._by_element: dict = {}
        self._styles = styles
        self._tags = tags
        body = document.body
        elements = body_elements(body) if body is not None else []
        marked = [el for el in elements if el.get(SNAPSHOT_INDEX_ATTR) is not None]
        if marked:
            self._bind_marked(marked)
        else:
            self._bind_positional(elements)

    def _bind(self, el, idx: int) -> None:
        tag = element_tag(el)
        if self._tags is not None and idx < len(self._tags) and self._tags[idx].lower() != tag:
            logger.debug("Snapshot tag mismatch at %d: <%s> vs <%s>", idx, self._tags[idx], tag)
            return
        self._by_element[el] = ComputedStyle(self._styles[idx], tag=tag)

    def _bind_marked(self, marked: list) -> None:
        for el in marked:
            raw = el.attrib.pop(SNAPSHOT_INDEX_ATTR)
            if not raw.isdigit() or int(raw) >= len(self._styles):
                logger.debug("Ignoring snapshot index %r on <%s>", raw, element_tag(el))
                continue
            self._bind(el, int(raw))

    def _bind_positional(self, elements: list) -> None:
        if len(elements) != len(self._styles):
            logger.warning("Style snapshot has %d entries for %d elements", len(self._styles), len(elements))
        for idx, el in enumerate(elements[: len(self._styles)]):
            self._bind(el, idx)

    def resolve(self, el) -> ComputedStyle:
        style = self._by_element.get(el)
        return style if style is not None else ComputedStyle(tag=element_tag(el))
