"""Argument parser construction for CLI commands."""

from __future__ import annotations

import argparse
from typing import List, Optional

PAGE_TYPES = [
    "landing page",
    "portfolio",
    "blog",
    "business website",
    "online store",
    "event page",
    "restaurant menu",
    "personal page",
]


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("must be zero or more")
    return number


def _add_verbose(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_generate_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sitegen",
        description="Generate a complete single-page website from a description.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Generate and write a sandboxed preview page
  sitegen "bakery landing page" -o preview.html

  # Required sections, image count and language
  sitegen "bakery landing page" --section about --section menu --section contact --images 2

  # Generate and export straight to a zip archive
  sitegen "yoga studio" --language German --export site.zip

  # Print the document summary as JSON
  sitegen "photography portfolio" --json
""",
    )
    parser.add_argument("idea", help="Free-text description of the website")
    parser.add_argument(
        "--page-type",
        type=str,
        default="landing page",
        help=f"Page type, e.g. {', '.join(PAGE_TYPES[:4])} (default: landing page)",
    )
    parser.add_argument(
        "--language",
        type=str,
        default="",
        help="Target language of the site content (default: language of the idea)",
    )
    parser.add_argument(
        "--section",
        dest="sections",
        action="append",
        default=[],
        help="Required section, repeatable and ordered (e.g. --section about)",
    )
    parser.add_argument(
        "--images",
        dest="image_count",
        type=_non_negative_int,
        default=3,
        help="Number of images to generate (default: 3)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write the preview page to this file",
    )
    parser.add_argument(
        "--export",
        type=str,
        default=None,
        help="Also export the site as a zip archive (file or directory)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Print the generated document as JSON",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not persist the generated site to the local state file",
    )
    _add_verbose(parser)
    return parser.parse_args(argv)


def parse_preview_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sitegen-preview",
        description="Render the last generated site as a preview page.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Emit the resolved document without the sandbox wrapper",
    )
    _add_verbose(parser)
    return parser.parse_args(argv)


def parse_export_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sitegen-export",
        description="Export the last generated site as a zip archive.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=".",
        help="Target file or directory (default: ./ai-generated-website.zip)",
    )
    _add_verbose(parser)
    return parser.parse_args(argv)
