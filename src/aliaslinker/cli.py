"""CLI entry point for aliaslinker."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click

from aliaslinker import __version__

if TYPE_CHECKING:
    from aliaslinker.container import Container


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Config, vault and verbosity options shared by every command."""
    func = click.option(
        "-v",
        "--verbose",
        is_flag=True,
        help="Enable verbose (DEBUG) logging",
    )(func)
    func = click.option(
        "--vault",
        "vault_path",
        default=None,
        help="Vault directory (overrides config file and ALIASLINKER_VAULT_PATH)",
    )(func)
    func = click.option(
        "-c",
        "--config",
        "config_path",
        default=None,
        help="Path to config file (default: ~/.aliaslinker/config.yaml)",
    )(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="aliaslinker")
def main() -> None:
    """aliaslinker: rewrite bare alias wiki links to [[Filename|Alias]]."""
    pass


@main.command()
@_common_options
@click.option("--dry-run", is_flag=True, help="Report rewrites without writing files")
def resolve(config_path: str | None, vault_path: str | None, verbose: bool, dry_run: bool) -> None:
    """Rewrite every declared alias across the whole vault."""
    from aliaslinker.core.errors import DocumentStoreError
    from aliaslinker.daemon import run_batch_pass

    container = _load_container(config_path, vault_path, dry_run=dry_run)
    _setup_logging(verbose, container.config.log_level)

    try:
        report = asyncio.run(run_batch_pass(container))
    except DocumentStoreError as e:
        click.echo(f"Resolve failed: {e}", err=True)
        sys.exit(1)

    verb = "Would rewrite" if report.dry_run else "Rewrote"
    for outcome in report.rewritten:
        click.echo(f"  {verb} {outcome.replacements} link(s) in {outcome.document}")
    for outcome in report.failed:
        click.echo(f"  Failed: {outcome.document}: {outcome.error}", err=True)
    click.echo(
        f"{len(report.rewritten)} document(s) rewritten, "
        f"{report.replacements} link(s), {len(report.failed)} failed."
    )

    if report.failed:
        sys.exit(1)


@main.command(name="open")
@click.argument("name")
@_common_options
@click.option("--dry-run", is_flag=True, help="Report rewrites without writing the file")
def open_document(
    name: str, config_path: str | None, vault_path: str | None, verbose: bool, dry_run: bool
) -> None:
    """Resolve the bare links of one document, as when it is opened."""
    from aliaslinker.core.errors import DocumentStoreError
    from aliaslinker.core.models import RewriteStatus
    from aliaslinker.daemon import run_local_pass

    container = _load_container(config_path, vault_path, dry_run=dry_run)
    _setup_logging(verbose, container.config.log_level)

    try:
        outcome = asyncio.run(run_local_pass(container, name))
    except DocumentStoreError as e:
        click.echo(f"Open failed: {e}", err=True)
        sys.exit(1)

    if outcome is None:
        click.echo(f"Document not found: {name}", err=True)
        sys.exit(1)

    if outcome.status == RewriteStatus.FAILED:
        click.echo(f"Failed: {outcome.document}: {outcome.error}", err=True)
        sys.exit(1)
    elif outcome.status == RewriteStatus.REWRITTEN:
        verb = "Would rewrite" if dry_run else "Rewrote"
        click.echo(f"{verb} {outcome.replacements} link(s) in {outcome.document}")
    else:
        click.echo(f"No alias links to rewrite in {outcome.document}")


@main.command()
@_common_options
def aliases(config_path: str | None, vault_path: str | None, verbose: bool) -> None:
    """List declared aliases and aliases claimed by several documents."""
    from aliaslinker.core.errors import DocumentStoreError

    container = _load_container(config_path, vault_path)
    _setup_logging(verbose, container.config.log_level)

    try:
        pairs = container.index.all_alias_pairs()
        conflicts = container.index.find_conflicts()
    except DocumentStoreError as e:
        click.echo(f"Error reading vault: {e}", err=True)
        sys.exit(1)

    click.echo("Declared aliases")
    click.echo("=" * 40)
    if not pairs:
        click.echo("  (none)")
    for pair in pairs:
        click.echo(f"  {pair.alias} -> {pair.canonical_name}")

    if conflicts:
        click.echo("")
        click.echo(f"Ambiguous aliases ({container.index.policy.value})")
        click.echo("=" * 40)
        for conflict in conflicts:
            click.echo(f"  {conflict.alias}: {', '.join(conflict.documents)}")


@main.command()
@_common_options
def watch(config_path: str | None, vault_path: str | None, verbose: bool) -> None:
    """Watch the vault and rewrite alias links as notes change (foreground)."""
    from aliaslinker.daemon import Daemon

    container = _load_container(config_path, vault_path)
    _setup_logging(verbose, container.config.log_level)
    daemon = Daemon(container)

    try:
        asyncio.run(daemon.run())
    except KeyboardInterrupt:
        click.echo("Shutting down...")


def _load_container(
    config_path: str | None, vault_path: str | None, dry_run: bool = False
) -> Container:
    """Load config and build the default container, exiting on config errors."""
    from aliaslinker.config import load_config
    from aliaslinker.container import Container

    try:
        config = load_config(config_path, vault_path=vault_path)
    except Exception as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    if dry_run:
        config = config.model_copy(update={"dry_run": True})

    return Container.create_default(config)


def _setup_logging(verbose: bool, log_level: str = "INFO") -> None:
    """Configure logging for the CLI. ``--verbose`` overrides the configured level."""
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper())
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
