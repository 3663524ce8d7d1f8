# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import elementormap  # noqa: F401
except ImportError:
    raise ImportError("elementormap is not installed. Run: pip install -e '.[dev]'") from None

import pytest


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep ELEMENTORMAP_* overrides from the developer shell out of tests."""
    import os

    for name in list(os.environ):
        if name.startswith("ELEMENTORMAP_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _block_real_browser(request, monkeypatch):
    """Safety net: prevent real Chromium launches in unit tests.

    Tests of the browser path patch ``playwright.async_api.async_playwright``
    or ``elementormap.converter.snapshot_computed_styles`` themselves; opt out
    of this fixture with ``@pytest.mark.browser``.
    """
    if "browser" in request.keywords:
        return

    async def _no_real_browser(*args, **kwargs):
        raise RuntimeError(
            "Test tried to take a real browser style snapshot. "
            "Patch 'elementormap.converter.snapshot_computed_styles' in your test."
        )

    monkeypatch.setattr("elementormap.converter.snapshot_computed_styles", _no_real_browser)
