"""Command-line interface for generating, previewing and exporting sites."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .cli_config import load_config

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "sitegen"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"


def _load_config() -> None:
    load_config(
        config_dir=CONFIG_DIR,
        config_env_file=CONFIG_ENV_FILE,
        cwd=Path.cwd(),
        load_env=load_dotenv,
        copy_file=shutil.copy,
    )


_load_config()

from .cli_output import document_json, format_document_markdown, write_output
from .cli_parsers import parse_export_args, parse_generate_args, parse_preview_args
from .config import load_settings
from .document import GenerationRequest
from .errors import SitegenError, user_message
from .export import ExportAssembler
from .persistence import StateStore, load_document
from .preview import render_document, render_sandbox_page, write_preview
from .session import SiteSession


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _report_failure(exc: BaseException, verbose: bool) -> None:
    logging.error("%s", user_message(exc))
    logging.debug("Details: %s", exc)
    if verbose:
        logging.exception("Full traceback:")


# =============================================================================
# GENERATE COMMAND
# =============================================================================


async def _run_generate_async(args: argparse.Namespace) -> int:
    """Main async entry point for generate."""
    request = GenerationRequest(
        idea=args.idea,
        page_type=args.page_type,
        language=args.language,
        sections=list(args.sections),
        image_count=args.image_count,
    )
    session = SiteSession(load_settings())

    logging.info("Generating website: %s", request.idea)
    document = await session.generate(request)
    if args.no_save:
        session.saver.cancel()
    else:
        await session.close()

    failed = [image for image in document.images if image.failed]
    for image in failed:
        logging.warning("Image %s could not be generated", image.placeholder_id)

    if args.output:
        write_preview(document, args.output)

    if args.export:
        await session.exporter.export_to_path(document, args.export)

    if args.json_output:
        write_output(document_json(document), None)
    elif not args.output:
        write_output(format_document_markdown(document), None)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the generate command."""
    args = parse_generate_args(argv)
    _setup_logging(args.verbose)

    try:
        return asyncio.run(_run_generate_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except (SitegenError, ValueError) as exc:
        _report_failure(exc, args.verbose)
        return 1
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


# =============================================================================
# PREVIEW COMMAND
# =============================================================================


def preview_main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for rendering the saved site."""
    args = parse_preview_args(argv)
    _setup_logging(args.verbose)

    settings = load_settings()
    document = load_document(StateStore(settings.state_file, quota_bytes=settings.state_quota))
    if document is None:
        logging.error("No saved site found. Run `sitegen \"your idea\"` first.")
        return 1

    if args.output and not args.raw:
        write_preview(document, args.output)
        return 0

    markup = render_document(document)
    if not args.raw:
        markup = render_sandbox_page(markup, title=document.page_title or "Preview")
    write_output(markup, args.output)
    return 0


# =============================================================================
# EXPORT COMMAND
# =============================================================================


async def _run_export_async(args: argparse.Namespace) -> int:
    settings = load_settings()
    document = load_document(StateStore(settings.state_file, quota_bytes=settings.state_quota))
    path = await ExportAssembler().export_to_path(document, args.output)
    logging.info("Exported site to %s", path)
    return 0


def export_main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for exporting the saved site."""
    args = parse_export_args(argv)
    _setup_logging(args.verbose)

    try:
        return asyncio.run(_run_export_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except SitegenError as exc:
        _report_failure(exc, args.verbose)
        return 1
    except OSError as exc:
        logging.error("Could not write archive: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
