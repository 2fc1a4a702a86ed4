"""
Barrel purging - delete barrel files that only re-export.

A pure barrel has at least one statement and every top-level statement is an
export with a module specifier (`export ... from '...'`). Anything else,
including a plain `export const`, makes it impure: impure barrels are never
partially stripped, only reported.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from barrel_breaker.code_intelligence.project import Project
from barrel_breaker.code_intelligence.treesitter_parser import ParsedModule
from barrel_breaker.utils.logger import logger

PURGE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
IGNORED_DIRS = {"node_modules", ".git"}

PURE_BARREL = "pure_barrel"
IMPURE_BARREL = "impure_barrel"
NOT_A_BARREL = "not_a_barrel"


@dataclass
class PurgeResult:
    """Outcome of a purge scan."""
    pure: List[Path] = field(default_factory=list)
    impure: List[Path] = field(default_factory=list)
    deleted: List[Path] = field(default_factory=list)
    failed: List[Path] = field(default_factory=list)
    dry_run: bool = False


def is_pure_barrel(module: ParsedModule) -> bool:
    """True if every top-level statement of a non-empty module is a re-export."""
    if not module.statements:
        return False
    return all(stmt.is_reexport for stmt in module.statements)


def classify_barrel(module: ParsedModule) -> str:
    """Exactly one of PURE_BARREL, IMPURE_BARREL, NOT_A_BARREL."""
    if not module.is_barrel:
        return NOT_A_BARREL
    return PURE_BARREL if is_pure_barrel(module) else IMPURE_BARREL


def collect_files(directory: Union[str, Path], extensions: Iterable[str] = PURGE_EXTENSIONS) -> List[Path]:
    """Source files under `directory`, sorted, skipping node_modules."""
    root = Path(directory)
    if root.is_file():
        return [root.resolve()]

    files = set()
    for ext in extensions:
        for path in root.glob(f"**/*{ext}"):
            if IGNORED_DIRS.intersection(path.relative_to(root).parts):
                continue
            if path.is_file():
                files.add(path.resolve())
    return sorted(files)


def scan_barrels(directory: Union[str, Path], project: Project = None) -> PurgeResult:
    """Partition barrel files under `directory` into pure and impure."""
    project = project or Project()
    result = PurgeResult()

    for path in collect_files(directory):
        module = project.get_module(path)
        if module is None:
            continue
        kind = classify_barrel(module)
        if kind == PURE_BARREL:
            result.pure.append(path)
        elif kind == IMPURE_BARREL:
            result.impure.append(path)

    return result


def purge_barrels(
    directory: Union[str, Path],
    dry_run: bool = False,
    scan: Optional[PurgeResult] = None,
) -> PurgeResult:
    """
    Delete pure barrel files under `directory`.

    Args:
        directory: Directory to scan
        dry_run: Only report what would be deleted
        scan: Earlier scan_barrels result to delete from instead of rescanning

    Returns:
        PurgeResult with the partition and the files actually deleted
    """
    result = scan if scan is not None else scan_barrels(directory)
    result.dry_run = dry_run

    for path in result.impure:
        logger.warning("purge", f"Skipped impure barrel file: {path}")

    if dry_run:
        return result

    for path in result.pure:
        try:
            path.unlink()
        except OSError as e:
            logger.error("purge", f"Could not delete {path}", exception=e)
            result.failed.append(path)
            continue
        result.deleted.append(path)
        logger.barrel_deleted(str(path))

    return result
