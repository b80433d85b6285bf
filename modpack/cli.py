"""CLI entrypoints for modpack commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List

from .config import ConfigError, PackConfig, load_config
from .logging import configure_logging
from .models import Diagnostic, DiagnosticCollector
from .pipeline import Packager
from .registry import PackError
from .verifier import AssetVerifier


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .modpack.yml (defaults to the current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modpack",
        description="Collect modules from source directories into a single archive.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    pack_parser = subparsers.add_parser(
        "pack",
        help="Discover modules under the given roots and write them to an archive.",
    )
    _add_verbose_option(pack_parser, suppress_default=True)
    _add_config_option(pack_parser)
    pack_parser.add_argument(
        "roots",
        nargs="+",
        help="Directories that contain modules and configuration bundles.",
    )
    pack_parser.add_argument(
        "-o",
        "--output",
        required=True,
        type=Path,
        help="Archive file to create.",
    )
    pack_parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip script verification entirely.",
    )
    pack_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 when verification reports diagnostics.",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Verify script files without building an archive.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    _add_config_option(check_parser)
    check_parser.add_argument("files", nargs="+", type=Path, help="Script files to verify.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service exposing pack runs.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_config_option(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for modpack commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = load_config(args.config or Path.cwd())
    except ConfigError as exc:
        parser.exit(1, f"modpack: {exc}\n")

    if args.command == "pack":
        _run_pack(parser, args, config)
    elif args.command == "check":
        _run_check(parser, args, config)
    elif args.command == "serve":  # pragma: no cover - integration path
        from .service import run_service

        run_service(args.host, args.port, config=config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_pack(parser: argparse.ArgumentParser, args: argparse.Namespace, config: PackConfig) -> None:
    if args.no_verify:
        config.verifier.enabled = False
    output: Path = args.output
    collector = DiagnosticCollector()
    sink = collector if config.verifier.enabled else None

    try:
        modules = asyncio.run(Packager(config).run(args.roots, output, sink))
    except (PackError, OSError) as exc:
        parser.exit(1, f"modpack pack failed: {exc}\n")
    except Exception as exc:  # pragma: no cover - unexpected failure
        parser.exit(1, f"modpack pack failed: {exc}\nRun with --verbose for more details.\n")

    _print_diagnostics(collector.diagnostics)
    for name in modules:
        print(name)
    if args.strict and collector.diagnostics:
        parser.exit(2, f"{len(collector.diagnostics)} diagnostic(s) reported\n")


def _run_check(parser: argparse.ArgumentParser, args: argparse.Namespace, config: PackConfig) -> None:
    verifier = AssetVerifier(config.verifier)
    collector = DiagnosticCollector()

    async def _verify_all() -> None:
        await verifier.verify_many(collector, args.files)

    try:
        asyncio.run(_verify_all())
    except OSError as exc:
        parser.exit(1, f"modpack check failed: {exc}\n")

    _print_diagnostics(collector.diagnostics)
    if collector.diagnostics:
        parser.exit(2, f"{len(collector.diagnostics)} diagnostic(s) reported\n")


def _print_diagnostics(diagnostics: List[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        print(f"{diagnostic.location}: {diagnostic.message}", file=sys.stderr)


if __name__ == "__main__":
    main(sys.argv[1:])
