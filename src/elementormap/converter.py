# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""HTML → Elementor conversion pipeline.

Flow:
  markup string
    → load (lxml tree at the desktop viewport width)
    → style resolver (static cascade, or a browser snapshot)
    → normalize roots (drop non-visual nodes, unwrap one generic wrapper)
    → classify + build (recursive, one stats accumulator per call)
    → assemble (full-site envelope + one envelope per section)
    → ConversionResult
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace

from elementormap import ConversionResult
from elementormap.assembler import assemble_result
from elementormap.browser_styles import BrowserConfig, snapshot_computed_styles
from elementormap.classifier import BuildContext, build_forest
from elementormap.config import ConverterConfig
from elementormap.errors import ConversionError
from elementormap.loader import load_document
from elementormap.normalizer import normalize_roots
from elementormap.pipeline_timer import PipelineTimer
from elementormap.styles import ResolverFactory, StaticStyleResolver

logger = logging.getLogger(__name__)


def convert_html_to_elementor(
    html: str,
    *,
    config: ConverterConfig | None = None,
    style_resolver: ResolverFactory | None = None,
    rng: random.Random | None = None,
) -> ConversionResult:
    """Convert an HTML document into the full-site envelope plus section slices.

    Args:
        html: Self-contained HTML (embedded <style> blocks, absolute image URLs).
        config: Conversion constants; defaults to the desktop profile.
        style_resolver: Factory building the style resolver for the loaded
            document. Defaults to the headless StaticStyleResolver.
        rng: Random source for element ids (tests pass a seeded one).

    Raises:
        ConversionError: any failure inside the pipeline. No partial result.
    """
    cfg = config or ConverterConfig()
    factory = style_resolver or StaticStyleResolver
    timer = PipelineTimer()

    try:
        timer.stage("loading")
        with load_document(html, viewport_width=cfg.viewport_width) as loaded:
            timer.stage("styling")
            resolver = factory(loaded)

            timer.stage("normalizing")
            roots = normalize_roots(loaded.root_nodes)

            timer.stage("classifying")
            ctx = BuildContext.create(resolver, cfg, rng=rng)
            built = build_forest(roots, ctx)

            timer.stage("assembling")
            result = assemble_result(
                built,
                ctx.stats.freeze(),
                title=cfg.full_site_title,
                version=cfg.envelope_version,
            )
        timer.finalize()
    except Exception as exc:
        report = timer.failure_report()
        logger.error("Conversion failed at stage=%s: %s", report["failed_at"], exc)
        raise ConversionError(
            f"Conversion failed during {report['failed_at']}: {exc}",
            stage=report["failed_at"],
            hint=report["hint"],
        ) from exc

    result = replace(result, timings=timer.elapsed_per_stage())
    logger.info(
        "Converted HTML: containers=%d widgets=%d sections=%d custom_css=%s (%.1fms)",
        result.stats.sections,
        result.stats.widgets,
        result.total_sections,
        result.stats.custom_css_injected,
        timer.total_ms,
    )
    return result


async def convert_html_to_elementor_in_browser(
    html: str,
    *,
    config: ConverterConfig | None = None,
    browser_config: BrowserConfig | None = None,
    rng: random.Random | None = None,
) -> ConversionResult:
    """Same conversion, with computed styles taken from a real Chromium render.

    Raises:
        BrowserError: the style snapshot could not be taken.
        ConversionError: the conversion itself failed.
    """
    cfg = config or ConverterConfig()
    bcfg = browser_config or BrowserConfig(viewport_width=cfg.viewport_width)
    snapshot = await snapshot_computed_styles(html, bcfg)
    return convert_html_to_elementor(
        snapshot.html,
        config=cfg,
        style_resolver=snapshot.resolver_factory(),
        rng=rng,
    )
