"""Command-line access to the template repository registry."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses as dc
import os
import sys
from pathlib import Path

import msgspec

from quarry.logging import configure_logging, get_logger, log_warning

from .config import TemplateRegistryConfig
from .errors import TemplateRegistryConfigError, TemplateRegistryError
from .models import repository_to_builtins
from .service import TemplateRegistryService

logger = get_logger(__name__)

_MUTATING_COMMANDS = frozenset({"add", "delete", "enable", "disable"})


def _print_json(value: object) -> None:
    sys.stdout.write(msgspec.json.format(msgspec.json.encode(value), indent=2).decode())
    sys.stdout.write("\n")


async def _run(args: argparse.Namespace, config: TemplateRegistryConfig) -> None:
    async with TemplateRegistryService(config) as service:
        match args.command:
            case "repos":
                repositories = service.get_repositories()
                _print_json([repository_to_builtins(repo) for repo in repositories])
            case "templates":
                _print_json(await service.get_templates(args.style))
            case "styles":
                _print_json(await service.get_all_template_styles())
            case "add":
                added = await service.add_repository(args.url, args.description)
                _print_json(repository_to_builtins(added))
            case "delete":
                await service.delete_repository(args.url)
            case "enable":
                await service.enable_repository(args.url)
            case "disable":
                await service.disable_repository(args.url)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--repository-file",
        type=Path,
        default=None,
        help="Repository list JSON file (defaults to QUARRY_REPOSITORY_FILE)",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("repos", help="List registered repositories")
    templates = commands.add_parser("templates", help="List templates")
    templates.add_argument("--style", default=None, help="Only show this style")
    commands.add_parser("styles", help="List project styles")
    add = commands.add_parser("add", help="Register a template repository")
    add.add_argument("url")
    add.add_argument("--description", default=None)
    for name, help_text in (
        ("delete", "Remove a template repository"),
        ("enable", "Enable a template repository"),
        ("disable", "Disable a template repository"),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("url")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run a registry command.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when the registry rejects the command or
        a mutating command has no repository file to write.

    """
    args = _build_parser().parse_args(argv)

    level, invalid = configure_logging(os.environ.get("QUARRY_LOG_LEVEL", "INFO"))
    if invalid:
        log_warning(logger, "Invalid QUARRY_LOG_LEVEL; using %s", level)

    try:
        config = TemplateRegistryConfig.from_env()
        if args.repository_file is not None:
            config = dc.replace(config, repository_file=args.repository_file)
        if args.command in _MUTATING_COMMANDS and config.repository_file is None:
            raise TemplateRegistryConfigError.missing_repository_file(args.command)
        asyncio.run(_run(args, config))
    except TemplateRegistryError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
