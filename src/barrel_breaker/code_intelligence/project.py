"""
Project - run-scoped registry of parsed modules.

Parses each file at most once, resolves module specifiers to files (relative
paths, tsconfig aliases, extension and index probing), and looks up where an
exported name is actually declared.

Declaration lookup returns a tagged SymbolResolution rather than "the first
declaration found", so callers branch explicitly on:
    found_in_module     the module declares the symbol itself
    found_via_reexport  the symbol is forwarded from another module
    not_found           nothing resolvable (dynamic, external, missing)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

from barrel_breaker.code_intelligence.aliases import AliasTable
from barrel_breaker.code_intelligence.treesitter_parser import ParsedModule, TreeSitterParser
from barrel_breaker.errors import ParseError
from barrel_breaker.utils.logger import logger

FOUND_IN_MODULE = "found_in_module"
FOUND_VIA_REEXPORT = "found_via_reexport"
NOT_FOUND = "not_found"

# Probing order for a specifier that names no file directly
PROBE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".js", ".jsx")
INDEX_FILES = ("index.ts", "index.tsx", "index.d.ts", "index.js", "index.jsx")

# ESM-style specifiers ('./foo.js') that point at TypeScript sources
EMITTED_TO_SOURCE = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}


@dataclass(frozen=True)
class SymbolResolution:
    """
    Where an exported name is declared.

    Attributes:
        kind: FOUND_IN_MODULE, FOUND_VIA_REEXPORT or NOT_FOUND
        defining_module: Absolute path of the declaring module
        local_name: Name the declaring module exports the symbol under
    """
    kind: str
    defining_module: Optional[Path] = None
    local_name: Optional[str] = None

    @classmethod
    def in_module(cls, module: Path, local_name: str) -> "SymbolResolution":
        return cls(FOUND_IN_MODULE, module, local_name)

    @classmethod
    def via_reexport(cls, module: Path, local_name: str) -> "SymbolResolution":
        return cls(FOUND_VIA_REEXPORT, module, local_name)

    @classmethod
    def not_found(cls) -> "SymbolResolution":
        return cls(NOT_FOUND)

    @property
    def found(self) -> bool:
        return self.kind != NOT_FOUND


class ModuleResolver:
    """
    Resolves module specifiers to files on disk.

    Only relative and aliased specifiers are resolved; anything else is an
    external package and yields None.
    """

    def __init__(self, alias_table: AliasTable):
        self.alias_table = alias_table

    def is_local(self, specifier: str) -> bool:
        return specifier.startswith(".") or self.alias_table.is_alias_specifier(specifier)

    def resolve(self, importer: Union[str, Path], specifier: str) -> Optional[Path]:
        """
        Resolve `specifier` as imported from the file `importer`.

        Returns:
            Absolute path of the target file, or None
        """
        if not specifier:
            return None

        if specifier.startswith("."):
            bases = [Path(os.path.dirname(str(importer))) / specifier]
        elif self.alias_table.is_alias_specifier(specifier):
            bases = self.alias_table.expand(specifier)
        else:
            return None

        for base in bases:
            found = self.probe(base)
            if found is not None:
                return found
        return None

    @staticmethod
    def probe(base: Path) -> Optional[Path]:
        """Find the file a specifier base path refers to."""
        base = Path(os.path.normpath(str(base)))

        if base.is_file() and TreeSitterParser.supports(base):
            return base.resolve()

        suffix = base.suffix.lower()
        for source_ext in EMITTED_TO_SOURCE.get(suffix, ()):
            candidate = base.with_suffix(source_ext)
            if candidate.is_file():
                return candidate.resolve()

        for ext in PROBE_EXTENSIONS:
            candidate = Path(str(base) + ext)
            if candidate.is_file():
                return candidate.resolve()

        if base.is_dir():
            for index in INDEX_FILES:
                candidate = base / index
                if candidate.is_file():
                    return candidate.resolve()

        return None


class Project:
    """
    Parsed modules of one run, keyed by absolute path.

    Usage:
        project = Project(alias_table)
        module = project.get_module("/repo/src/app.ts")
        target = project.resolve_module(module, "./modules")
        resolution = project.resolve_export(target, "default")
    """

    def __init__(self, alias_table: Optional[AliasTable] = None, parser: Optional[TreeSitterParser] = None):
        self.alias_table = alias_table or AliasTable.empty()
        self.parser = parser or TreeSitterParser()
        self.resolver = ModuleResolver(self.alias_table)
        self._modules: Dict[Path, Optional[ParsedModule]] = {}

    def get_module(self, path: Union[str, Path]) -> Optional[ParsedModule]:
        """
        Parse (once) and return the module at `path`.

        Unreadable or unsupported files are logged and yield None.
        """
        key = Path(path).resolve()
        if key in self._modules:
            return self._modules[key]

        module = None
        if key.is_file() and self.parser.supports(key):
            try:
                module = self.parser.parse_file(key)
                module.path = key
                if module.has_errors:
                    logger.warning("project", f"Syntax errors in {key}, some imports may be missed")
            except ParseError as e:
                logger.warning("project", str(e))

        self._modules[key] = module
        return module

    def add_module_if_exists(self, path: Union[str, Path]) -> Optional[ParsedModule]:
        if not Path(path).is_file():
            return None
        return self.get_module(path)

    def resolve_module(self, importer: ParsedModule, specifier: Optional[str]) -> Optional[ParsedModule]:
        """Resolve a specifier used inside `importer` to its parsed module."""
        if not specifier:
            return None
        target = self.resolver.resolve(importer.path, specifier)
        if target is None:
            return None
        return self.get_module(target)

    def is_local_specifier(self, specifier: str) -> bool:
        return self.resolver.is_local(specifier)

    # =========================================================================
    # DECLARATION LOOKUP
    # =========================================================================

    def resolve_export(
        self,
        module: ParsedModule,
        name: str,
        visiting: Optional[Set[Tuple[Path, str]]] = None,
    ) -> SymbolResolution:
        """
        Find where the name `name` exported by `module` is declared.

        Follows local export clauses, `export default <identifier>`, imported
        bindings, named re-exports and `export *` (which never forwards
        `default`).

        Args:
            module: Module exporting the name
            name: Exported name ("default" for the default export)
            visiting: Cycle guard, owned by the top-level call
        """
        if visiting is None:
            visiting = set()
        key = (module.path, name)
        if key in visiting:
            return SymbolResolution.not_found()
        visiting.add(key)
        try:
            return self._resolve_export(module, name, visiting)
        finally:
            visiting.discard(key)

    def _resolve_export(self, module: ParsedModule, name: str, visiting: set) -> SymbolResolution:
        # Exports declared by the module itself
        for export in module.exports:
            if export.has_module_specifier:
                continue

            if export.kind == "default" and name == "default":
                if export.default_local:
                    return self._resolve_local(module, export.default_local, "default", visiting)
                return SymbolResolution.in_module(module.path, "default")

            if export.kind == "declaration" and name in export.declared_names:
                return SymbolResolution.in_module(module.path, name)

            if export.kind == "named":
                for spec in export.specifiers:
                    if spec.exported_name == name:
                        return self._resolve_local(module, spec.name, spec.exported_name, visiting)

        # Named re-exports
        for export in module.reexports:
            if export.kind != "named":
                continue
            for spec in export.specifiers:
                if spec.exported_name != name:
                    continue
                target = self._reexport_target(module, export.specifier)
                if target is None:
                    return SymbolResolution.not_found()
                return self._forwarded(target, spec.name, visiting)

        # export * never forwards the default export
        if name == "default":
            return SymbolResolution.not_found()

        for export in module.reexports:
            if export.kind != "star":
                continue
            target = self._reexport_target(module, export.specifier)
            if target is None:
                continue
            resolution = self._forwarded(target, name, visiting)
            if resolution.found:
                return resolution

        return SymbolResolution.not_found()

    def _resolve_local(self, module: ParsedModule, local: str, exported: str, visiting: set) -> SymbolResolution:
        """
        Resolve a top-level binding `local` that `module` exports as `exported`.

        Imported bindings are followed to their source. A binding declared in
        `module` resolves to `exported`, the only name importers can use.
        """
        bound = module.import_bindings()
        if local in bound:
            stmt, binding = bound[local]
            target = self.resolve_module(module, stmt.specifier)
            if target is None:
                return SymbolResolution.not_found()
            return self._forwarded(target, binding.imported_name, visiting)

        if local in module.declarations:
            return SymbolResolution.in_module(module.path, exported)

        return SymbolResolution.not_found()

    def _forwarded(self, target: ParsedModule, name: str, visiting: set) -> SymbolResolution:
        resolution = self.resolve_export(target, name, visiting)
        if not resolution.found:
            return resolution
        return SymbolResolution.via_reexport(resolution.defining_module, resolution.local_name)

    def _reexport_target(self, module: ParsedModule, specifier: str) -> Optional[ParsedModule]:
        target = self.resolve_module(module, specifier)
        if target is None:
            target = self.probe_reexport(module, specifier)
        return target

    def probe_reexport(self, module: ParsedModule, specifier: str) -> Optional[ParsedModule]:
        """
        Fallback lookup for a re-export target.

        Tries <spec>.ts, <spec>.tsx, <spec>/index.ts, <spec>/index.tsx relative
        to the re-exporting module, first existing wins.
        """
        base = Path(os.path.normpath(os.path.join(os.path.dirname(str(module.path)), specifier)))
        candidates: List[Path] = [
            Path(str(base) + ".ts"),
            Path(str(base) + ".tsx"),
            base / "index.ts",
            base / "index.tsx",
        ]
        for candidate in candidates:
            if candidate.is_file():
                return self.add_module_if_exists(candidate)
        return None
