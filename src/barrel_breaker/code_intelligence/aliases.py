"""
Path aliases and specifier computation.

An AliasTable holds the `compilerOptions.paths` patterns of a tsconfig
(e.g. "@components/*": ["./src/components/*"]) together with the directory
they are relative to. It answers three questions:

- is a specifier aliased?                 is_alias_specifier("@components/button")
- where can an aliased specifier live?    expand("@components/button")
- what is the alias for a file?           resolve_alias("/repo/src/components/button.ts")

relative_specifier() computes the `./`-style specifier from one file to
another. Both outputs always use forward slashes and carry no source
extension.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

SOURCE_EXTENSIONS = (".d.ts", ".tsx", ".ts", ".jsx", ".js")


def strip_extension(path: str) -> str:
    """Drop a TypeScript/JavaScript source extension from a path string."""
    for ext in SOURCE_EXTENSIONS:
        if path.endswith(ext):
            return path[: -len(ext)]
    return path


def _to_posix(path: str) -> str:
    return path.replace("\\", "/")


def _is_under(path: str, base: str) -> bool:
    """True if `path` is `base` or lies inside it, on a segment boundary."""
    if path == base:
        return True
    return path.startswith(base.rstrip("/") + "/")


@dataclass
class AliasTable:
    """
    Ordered alias patterns from a tsconfig, read-only during a run.

    Attributes:
        base_dir: Directory the target patterns are relative to
                  (tsconfig directory, or its baseUrl)
        paths: Alias pattern -> list of target patterns, in declared order
        config_path: tsconfig the table was read from (None when absent)
    """
    base_dir: Path
    paths: Dict[str, List[str]] = field(default_factory=dict)
    config_path: Optional[Path] = None

    @classmethod
    def empty(cls, base_dir: Union[str, Path, None] = None) -> "AliasTable":
        return cls(base_dir=Path(base_dir or os.getcwd()).resolve(), paths={})

    @property
    def prefixes(self) -> List[str]:
        """Alias patterns with their wildcard suffix removed."""
        return [alias.replace("/*", "").replace("*", "") for alias in self.paths]

    def __bool__(self) -> bool:
        return bool(self.paths)

    def is_alias_specifier(self, specifier: str) -> bool:
        """True if `specifier` matches one of the configured alias patterns."""
        return self._match(specifier) is not None

    def _match(self, specifier: str) -> Optional[tuple]:
        """Return (alias, wildcard remainder) for the first matching alias."""
        for alias in self.paths:
            if "*" not in alias:
                if specifier == alias:
                    return alias, None
                continue

            prefix, _, suffix = alias.partition("*")
            # a bare "*" pattern would claim every package import
            if not prefix:
                continue
            if specifier.startswith(prefix) and specifier.endswith(suffix) \
                    and len(specifier) >= len(prefix) + len(suffix):
                return alias, specifier[len(prefix): len(specifier) - len(suffix)]
            # "@components" against "@components/*"
            if not suffix and prefix.endswith("/") and specifier == prefix[:-1]:
                return alias, ""
        return None

    def expand(self, specifier: str) -> List[Path]:
        """
        Candidate base paths for an aliased specifier, in declared order.

        The returned paths still need extension / index probing.
        """
        match = self._match(specifier)
        if match is None:
            return []

        alias, remainder = match
        candidates = []
        for target in self.paths.get(alias, []):
            if remainder is None or "*" not in target:
                candidates.append(self.base_dir / target)
                continue
            expanded = target.replace("*", remainder)
            if not remainder:
                expanded = expanded.rstrip("/") or "."
            candidates.append(self.base_dir / expanded)
        return [Path(os.path.normpath(c)) for c in candidates]

    def resolve_alias(self, resolved_path: Union[str, Path]) -> Optional[str]:
        """
        Map an absolute file path to an alias-prefixed specifier.

        Aliases are tried in configuration order and, within an alias, target
        patterns in declared order; the first match wins.

        Returns:
            Specifier such as "@components/button", or None if the path is not
            under any alias target
        """
        path = _to_posix(os.path.normpath(str(resolved_path)))

        for alias, targets in self.paths.items():
            for target in targets:
                absolute = _to_posix(os.path.normpath(str(self.base_dir / target.replace("/*", "").replace("*", ""))))

                if "*" not in alias:
                    if "*" not in target and strip_extension(path) == strip_extension(absolute):
                        return alias
                    continue

                if "*" not in target or not _is_under(path, absolute):
                    continue

                alias_prefix = alias.partition("*")[0]
                remainder = path[len(absolute):].lstrip("/")
                if not remainder:
                    continue
                return alias_prefix + strip_extension(remainder)
        return None


def relative_specifier(from_file: Union[str, Path], to_file: Union[str, Path]) -> str:
    """
    Specifier that imports `to_file` from `from_file`.

    Example:
        relative_specifier("/repo/src/app.ts", "/repo/src/modules/named.ts")
        -> "./modules/named"
    """
    relative = os.path.relpath(str(to_file), os.path.dirname(str(from_file)))
    relative = _to_posix(strip_extension(relative))
    if not relative.startswith("."):
        relative = "./" + relative
    return relative
