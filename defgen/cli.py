"""CLI entrypoints for defgen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, DefgenConfig, load_config
from .errors import DefgenError
from .logging import configure_logging, get_logger
from .models import Definition, dump_definition
from .parser import extract_definition
from .render import Renderer, parse_params


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Log discovered services and other details.",
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


def _add_extract_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--exclude",
        default=None,
        help="Comma separated service names to leave out of the definition.",
    )
    parser.add_argument(
        "--out",
        default=None,
        help="Write output to this file instead of stdout.",
    )
    parser.add_argument(
        "patterns",
        nargs="*",
        help="Definition files or directories (append /... to recurse).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="defgen",
        description="Extract API definitions from Python Protocol and record classes.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to .defgen.yml (defaults to the current directory).",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_parser = subparsers.add_parser(
        "parse",
        help="Print the definition as JSON.",
    )
    _add_verbose_option(parse_parser, suppress_default=True)
    _add_extract_options(parse_parser)

    render_parser = subparsers.add_parser(
        "render",
        help="Render the definition through a Jinja2 template.",
    )
    _add_verbose_option(render_parser, suppress_default=True)
    render_parser.add_argument(
        "--template",
        default=None,
        help="Template file to render.",
    )
    render_parser.add_argument(
        "--pkg",
        default=None,
        help="Package name exposed to the template instead of the module name.",
    )
    render_parser.add_argument(
        "--params",
        default="",
        help="Template parameters as key:value,key2:value2.",
    )
    _add_extract_options(render_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for defgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file) if args.log_file else None,
    )
    logger = get_logger("cli")

    try:
        config = load_config(Path(args.config) if args.config else Path.cwd())
    except ConfigError as exc:
        parser.exit(1, _format_error(exc))

    patterns = list(args.patterns) or [str(config.root / pattern) for pattern in config.patterns]
    if not patterns:
        parser.exit(1, "defgen: no definition patterns given\n")
    exclude = _split_names(args.exclude) if args.exclude is not None else list(config.exclude)

    try:
        definition = extract_definition(*patterns, exclude=exclude)
        logger.debug(
            "Extracted %d services and %d objects",
            len(definition.services),
            len(definition.objects),
        )
        if args.command == "parse":
            _write(dump_definition(definition), args.out)
        elif args.command == "render":
            _render(parser, args, config, definition)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except DefgenError as exc:
        parser.exit(1, _format_error(exc))


def _render(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    config: DefgenConfig,
    definition: Definition,
) -> None:
    template = Path(args.template) if args.template else config.render.template
    if template is None:
        parser.exit(1, "defgen render: --template is required\n")
    params = dict(config.render.params)
    params.update(parse_params(args.params))
    renderer = Renderer(template, params=params)
    package = args.pkg or config.render.package
    output = args.out or config.render.output
    if output:
        written = renderer.render_to(definition, Path(output), package=package)
        print(f"Rendered {template} to {_relativize(written)}")
    else:
        sys.stdout.write(renderer.render(definition, package=package))


def _write(text: str, out: Optional[str]) -> None:
    if out is None:
        sys.stdout.write(text)
        return
    path = Path(out)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    print(f"Definition written to {_relativize(path)}")


def _split_names(value: str) -> List[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def _format_error(exc: BaseException) -> str:
    lines = [f"defgen: {exc}"]
    lines.extend(getattr(exc, "__notes__", []))
    return "\n".join(lines) + "\n"


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
