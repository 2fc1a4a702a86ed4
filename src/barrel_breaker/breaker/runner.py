"""
Run driver - rewrite barrel imports across a file or directory.

Two phases:
1. Analyze every module and plan its rewrite (nothing touches the disk).
2. Write the rewritten modules back, or hand them to the diff renderer.

An interrupt is only honoured between whole modules, so a file is either
fully rewritten or untouched.
"""

import os
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from barrel_breaker.breaker.context import RunContext
from barrel_breaker.breaker.planner import RewritePlanner
from barrel_breaker.breaker.purge import IGNORED_DIRS
from barrel_breaker.breaker.rewriter import apply_plan, import_lines
from barrel_breaker.code_intelligence.tsconfig import load_alias_table
from barrel_breaker.errors import WriteError
from barrel_breaker.utils.logger import logger

SOURCE_EXTENSIONS = (".ts", ".tsx")


@dataclass
class ModuleChange:
    """A module whose imports were rewritten."""
    path: Path
    old_text: str
    new_text: str
    removed_imports: List[str]
    added_imports: List[str]
    statements_rewritten: int = 0
    bindings_updated: int = 0


@dataclass
class RunSummary:
    """Result of a barrel-breaker run."""
    modules_processed: int = 0
    statements_rewritten: int = 0
    bindings_updated: int = 0
    changes: List[ModuleChange] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    failed: List[Path] = field(default_factory=list)
    dry_run: bool = False
    cancelled: bool = False
    alias_config_found: bool = True

    @property
    def success(self) -> bool:
        return not self.failed and not self.cancelled


def collect_source_files(
    input_path: Union[str, Path],
    extensions: Iterable[str] = SOURCE_EXTENSIONS,
) -> List[Path]:
    """
    Resolve an input path to the source files to process.

    A file is returned as-is; a directory is scanned recursively, skipping
    node_modules. The result is sorted so runs are deterministic.
    """
    root = Path(input_path).resolve()
    if root.is_file():
        return [root]

    files = set()
    for ext in extensions:
        for path in root.glob(f"**/*{ext}"):
            if IGNORED_DIRS.intersection(path.relative_to(root).parts):
                continue
            if path.is_file():
                files.add(path)
    return sorted(files)


def write_module(change: ModuleChange) -> None:
    """Write a rewritten module back, keeping its line endings."""
    try:
        with open(change.path, "w", encoding="utf-8", newline="") as f:
            f.write(change.new_text)
    except OSError as e:
        raise WriteError(str(change.path), str(e)) from e


@contextmanager
def _progress(enabled: bool, description: str, total: int):
    """Yield an `advance()` callable, backed by a progress bar when enabled."""
    if not enabled or total == 0:
        yield lambda: None
        return

    from barrel_breaker.cli.ui import create_progress

    with create_progress() as progress:
        task = progress.add_task(description, total=total)
        yield lambda: progress.advance(task)


def run_barrel_breaker(
    input_path: Union[str, Path],
    dry_run: bool = False,
    tsconfig_path: Union[str, Path] = "tsconfig.json",
    pattern: Optional[str] = None,
    show_progress: bool = False,
    render_diffs: bool = False,
) -> RunSummary:
    """
    Rewrite barrel imports under `input_path`.

    Args:
        input_path: File or directory to process
        dry_run: Plan and report changes without writing
        tsconfig_path: tsconfig.json providing path aliases
        pattern: Only process files whose path matches this regex
        show_progress: Draw progress bars
        render_diffs: Print a diff per changed module (dry run only)

    Returns:
        RunSummary with counts, changes and write failures
    """
    logger.run_start_info(str(input_path), str(tsconfig_path), dry_run)

    alias_table = load_alias_table(tsconfig_path)
    context = RunContext(alias_table=alias_table)
    planner = RewritePlanner(context)

    files = collect_source_files(input_path)
    logger.files_collected(len(files))
    if pattern:
        regex = re.compile(pattern)
        files = [f for f in files if regex.search(str(f))]
        logger.files_collected(len(files), pattern)

    summary = RunSummary(dry_run=dry_run, alias_config_found=alias_table.config_path is not None)

    with context.interruptible():
        # Phase 1: analyze
        with _progress(show_progress, "Analyzing imports", len(files)) as advance:
            for path in files:
                if context.cancelled:
                    break
                module = context.project.get_module(path)
                summary.modules_processed += 1
                if module is not None:
                    plan = planner.plan_module(module)
                    if plan.changed:
                        summary.changes.append(
                            ModuleChange(
                                path=module.path,
                                old_text=module.text,
                                new_text=apply_plan(plan),
                                removed_imports=[s.text for s in plan.removals],
                                added_imports=import_lines(plan),
                                statements_rewritten=plan.statements_rewritten,
                                bindings_updated=plan.bindings_updated,
                            )
                        )
                    else:
                        logger.module_unchanged(str(module.path))
                advance()

        # Phase 2: write or preview
        if not context.cancelled:
            if dry_run:
                if render_diffs:
                    from barrel_breaker.cli import ui

                    for change in summary.changes:
                        ui.show_diff(_display_path(change.path), change.old_text, change.new_text)
            else:
                with _progress(show_progress, "Writing imports", len(summary.changes)) as advance:
                    for change in summary.changes:
                        if context.cancelled:
                            break
                        try:
                            write_module(change)
                        except WriteError as e:
                            logger.error("write", str(e), exception=e)
                            summary.failed.append(change.path)
                        else:
                            summary.written.append(change.path)
                            logger.module_updated(str(change.path))
                        advance()

    summary.statements_rewritten = context.statements_rewritten
    summary.bindings_updated = context.bindings_updated
    summary.cancelled = context.cancelled
    logger.run_complete(
        summary.modules_processed,
        summary.statements_rewritten,
        summary.bindings_updated,
        summary.cancelled,
    )
    return summary


def _display_path(path: Path) -> str:
    try:
        return os.path.relpath(path)
    except ValueError:
        return str(path)
