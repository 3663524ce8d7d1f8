# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""JSON serialization and file export of conversion results.

Export layout (one directory per conversion):
  site-completo.json   full-site envelope
  <slice id>.json      one importable envelope per top-level section
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from elementormap import ConversionResult

FULL_SITE_FILENAME = "site-completo.json"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def to_json(obj: Any, indent: int = 2) -> str:
    """Serialize a model object (anything with ``to_dict``) or plain data to JSON."""
    data = obj.to_dict() if hasattr(obj, "to_dict") else obj
    return json.dumps(data, ensure_ascii=False, indent=indent)


def slice_filename(slice_id: str) -> str:
    """Filesystem-safe ``<id>.json`` name for a section slice."""
    stem = _UNSAFE_FILENAME_CHARS.sub("-", slice_id).strip(".-") or "section"
    return f"{stem}.json"


def export_result(result: ConversionResult, out_dir: Path | str) -> list[Path]:
    """Write the full site and every section slice under *out_dir*.

    Slice ids are not guaranteed unique (two sections may share an HTML id),
    so repeated filenames get ``-2``, ``-3`` ... suffixes.

    Returns:
        Written paths, full site first, then slices in document order.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    full_path = out / FULL_SITE_FILENAME
    full_path.write_text(to_json(result.full_site), encoding="utf-8")
    written = [full_path]

    used = {FULL_SITE_FILENAME}
    for section in result.sections:
        name = slice_filename(section.id)
        stem = name.removesuffix(".json")
        counter = 2
        while name in used:
            name = f"{stem}-{counter}.json"
            counter += 1
        used.add(name)
        path = out / name
        path.write_text(to_json(section.json_content), encoding="utf-8")
        written.append(path)
    return written
