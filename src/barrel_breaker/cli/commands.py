"""
CLI commands for barrel-breaker.

Main entry point: `brl [PATH]` rewrites barrel imports, `brl purge [PATH]`
deletes barrel files that only re-export.
"""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from barrel_breaker import __version__
from barrel_breaker.breaker import purge_barrels, run_barrel_breaker, scan_barrels
from barrel_breaker.cli import ui
from barrel_breaker.config import Config
from barrel_breaker.errors import BarrelBreakerError
from barrel_breaker.utils.logger import logger

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _setup(verbose: bool, colors: bool, log_dir, log_json: bool) -> None:
    """Configure console colors and logging for a command."""
    ui.configure(colors=colors)
    logger.configure(
        level="DEBUG" if verbose else "WARNING",
        log_dir=log_dir,
        json_mode=log_json,
    )


class DefaultCommandGroup(click.Group):
    """
    Group that falls back to a default subcommand.

    `brl src --dry-run` runs as `brl run src --dry-run`, while known
    subcommand names (`brl purge src`) dispatch as usual.
    """

    def __init__(self, *args, default_command: str = "run", **kwargs):
        super().__init__(*args, **kwargs)
        self.default_command = default_command

    def parse_args(self, ctx, args):
        if args and args[0] in ctx.help_option_names:
            return super().parse_args(ctx, args)
        if not args or args[0] not in self.commands:
            args = [self.default_command, *args]
        return super().parse_args(ctx, args)


@click.group(cls=DefaultCommandGroup)
def main():
    """
    barrel-breaker - Rewrite TypeScript barrel imports into direct imports

    Usage:
        brl                                   # Rewrite every .ts/.tsx file under .
        brl src --dry-run                     # Preview the rewrite as diffs
        brl src --pattern 'components/'       # Only matching files
        brl purge src                         # Delete pure barrel files

    Examples:
        brl src/app.ts --tsconfig tsconfig.app.json --summary
        brl purge src --dry-run
    """
    # Load environment variables
    load_dotenv()


@main.command()
@click.argument("path", required=False, type=click.Path(exists=True))
@click.option(
    "--pattern",
    "-p",
    default=None,
    help="Only process files whose path matches this regular expression",
)
@click.option(
    "--dry-run",
    "-d",
    is_flag=True,
    help="Show the changes without writing them",
)
@click.option(
    "--tsconfig",
    "-t",
    default=None,
    help="Path to tsconfig.json (default: ./tsconfig.json)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Log every import decision",
)
@click.option(
    "--summary/--no-summary",
    "-s",
    default=False,
    help="Print a summary table after the run",
)
@click.option(
    "--colors/--no-colors",
    default=None,
    help="Colorize terminal output",
)
@click.option(
    "--log-dir",
    default=None,
    help="Also write per-level log files to this directory",
)
@click.option(
    "--log-json",
    is_flag=True,
    help="Write log records as JSON lines",
)
def run(
    path: str,
    pattern: str,
    dry_run: bool,
    tsconfig: str,
    verbose: bool,
    summary: bool,
    colors: bool,
    log_dir: str,
    log_json: bool,
):
    """
    Rewrite barrel imports under PATH (default: current directory).

    Each import that goes through a barrel file is replaced by imports of the
    modules that actually declare the symbols.
    """
    config = Config()
    verbose = verbose or config.verbose
    colors = config.colors if colors is None else colors
    log_json = log_json or config.log_json
    tsconfig = tsconfig or config.tsconfig
    _setup(verbose, colors, log_dir or config.log_dir, log_json)

    try:
        result = run_barrel_breaker(
            path or ".",
            dry_run=dry_run,
            tsconfig_path=tsconfig,
            pattern=pattern,
            show_progress=not dry_run,
            render_diffs=dry_run,
        )

    except KeyboardInterrupt:
        ui.print_warning("Interrupted")
        sys.exit(EXIT_INTERRUPTED)

    except BarrelBreakerError as e:
        ui.print_error(f"Error: {e}")
        sys.exit(EXIT_FAILURE)

    except Exception as e:
        ui.print_error(f"Error: {str(e)}")
        if verbose:
            import traceback

            traceback.print_exc()
        sys.exit(EXIT_FAILURE)

    if not result.alias_config_found:
        ui.print_warning(f"tsconfig not found, path aliases are disabled: {tsconfig}")

    if summary:
        ui.show_summary(result)

    if result.cancelled:
        ui.print_warning("Cancelled, no further files were written")
        sys.exit(EXIT_INTERRUPTED)

    if result.failed:
        ui.show_failures(result.failed)
        sys.exit(EXIT_FAILURE)

    if dry_run:
        ui.print_success(f"Dry run: {len(result.changes)} file(s) would be updated")
    else:
        ui.print_success(f"Updated {len(result.written)} file(s)")


@main.command()
@click.argument("path", required=False, type=click.Path(exists=True, file_okay=False))
@click.option(
    "--dry-run",
    "-d",
    is_flag=True,
    help="List the barrel files that would be deleted",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Delete without asking for confirmation",
)
@click.option(
    "--colors/--no-colors",
    default=None,
    help="Colorize terminal output",
)
def purge(path: str, dry_run: bool, yes: bool, colors: bool):
    """
    Delete barrel files that only contain re-exports.

    Files that re-export and also contain other code are reported and kept.
    """
    config = Config()
    _setup(config.verbose, config.colors if colors is None else colors, config.log_dir, config.log_json)

    directory = Path(path or ".")

    try:
        if dry_run:
            result = purge_barrels(directory, dry_run=True)
            ui.show_purge_result(directory, result)
            return

        scan = None
        if not yes:
            scan = scan_barrels(directory)
            if not scan.pure:
                ui.show_purge_result(directory, scan)
                return
            if not ui.confirm_action(f"Delete {len(scan.pure)} pure barrel file(s)?"):
                ui.print_warning("Nothing deleted")
                return

        result = purge_barrels(directory, scan=scan)

    except KeyboardInterrupt:
        ui.print_warning("Interrupted")
        sys.exit(EXIT_INTERRUPTED)

    except Exception as e:
        ui.print_error(f"Error: {str(e)}")
        if config.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(EXIT_FAILURE)

    ui.show_purge_result(directory, result)
    if result.failed:
        sys.exit(EXIT_FAILURE)


@main.command()
def version():
    """Show barrel-breaker version."""
    click.echo(f"barrel-breaker version {__version__}")


if __name__ == "__main__":
    main()
