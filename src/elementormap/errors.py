# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""ElementorMap exception hierarchy.

All ElementorMap-specific errors inherit from ElementorMapError, allowing
callers to catch the base class for any failure or specific subclasses
for targeted handling.
"""

from __future__ import annotations


class ElementorMapError(Exception):
    """Base exception for all ElementorMap errors."""


class ConversionError(ElementorMapError):
    """HTML → Elementor conversion failed. No partial result is available."""

    def __init__(self, message: str, *, stage: str = "", hint: str = "") -> None:
        super().__init__(f"{message}\n  Hint: {hint}" if hint else message)
        self.stage = stage
        self.hint = hint


class BrowserError(ElementorMapError):
    """Browser launch or computed-style evaluation failure."""
