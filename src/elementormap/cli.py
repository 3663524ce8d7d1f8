# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""ElementorMap CLI: convert generated HTML into importable Elementor JSON.

Usage:
    python -m elementormap.cli convert page.html                 Full result JSON to stdout
    python -m elementormap.cli convert page.html -o out/         Export site + section files
    python -m elementormap.cli convert - --browser < page.html   Computed styles from Chromium
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from elementormap.config import ConverterConfig
from elementormap.errors import ElementorMapError


def _require_cli_deps() -> None:
    """Check that CLI optional dependencies are installed."""
    try:
        from tabulate import tabulate  # noqa: F401
    except ImportError as e:
        print(
            f"Missing CLI dependency: {e.name}\nInstall with: pip install retio-elementormap[cli]",
            file=sys.stderr,
        )
        sys.exit(1)


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {source}")
    return path.read_text(encoding="utf-8")


def cmd_convert(args: argparse.Namespace) -> None:
    """Convert one HTML document."""
    from elementormap.converter import convert_html_to_elementor, convert_html_to_elementor_in_browser
    from elementormap.serializer import export_result, to_json

    html = _read_input(args.input)
    config = ConverterConfig.from_env()

    if args.browser:
        result = asyncio.run(convert_html_to_elementor_in_browser(html, config=config))
    else:
        result = convert_html_to_elementor(html, config=config)

    if args.output:
        _require_cli_deps()
        from tabulate import tabulate

        written = export_result(result, args.output)
        rows = [["Site completo", "-", result.stats.sections, result.stats.widgets, written[0]]]
        for section, path in zip(result.sections, written[1:], strict=True):
            nodes = list(section.json_content.content[0].iter_tree())
            containers = sum(1 for n in nodes if n.is_container)
            rows.append([section.name, section.id, containers, len(nodes) - containers, path])
        headers = ["Section", "Id", "Containers", "Widgets", "File"]
        print(tabulate(rows, headers=headers, tablefmt="simple"))
        print(
            f"\n{result.stats.sections} containers, {result.stats.widgets} widgets, "
            f"{result.total_sections} sections → {Path(args.output)}",
            file=sys.stderr,
        )
        return

    print(to_json(result, indent=args.indent))


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="ElementorMap CLI",
        prog="python -m elementormap.cli",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_convert = subparsers.add_parser("convert", help="Convert an HTML file into Elementor JSON")
    p_convert.add_argument("input", help="HTML file path, or '-' for stdin")
    p_convert.add_argument("-o", "--output", type=str, help="Export directory (site-completo.json + sections)")
    p_convert.add_argument("--browser", action="store_true", help="Resolve computed styles in headless Chromium")
    p_convert.add_argument("--indent", type=int, default=2, help="JSON indentation for stdout output")

    commands = {"convert": cmd_convert}
    args = parser.parse_args(argv)

    from elementormap.logging_config import configure

    configure(json_output=args.json_logs, level="DEBUG" if args.verbose else "WARNING")

    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except (ElementorMapError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
