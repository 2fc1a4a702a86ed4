"""
Rewrite planning - turning barrel imports into direct imports.

For every binding of a barrel import the planner finds the module that really
declares it and the specifier to reach that module (tsconfig alias when the
original import used one, relative path otherwise). Bindings that move are
grouped by target specifier; bindings that can't or needn't move stay in a
residual import of the original specifier.

    import { named, nested as n } from './modules';

becomes

    import { named } from './modules/named-export';
    import { actualNested as n } from './modules/nested/nested-export';

Nothing is written here: a RewritePlan is handed to the rewriter, which
applies it or renders it as a diff.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from barrel_breaker.breaker.analyzer import ImportAnalyzer, ImportClassification
from barrel_breaker.breaker.context import RunContext
from barrel_breaker.breaker.export_map import ExportMap, ExportMapBuilder
from barrel_breaker.code_intelligence.aliases import relative_specifier
from barrel_breaker.code_intelligence.project import (
    FOUND_IN_MODULE,
    FOUND_VIA_REEXPORT,
    SymbolResolution,
)
from barrel_breaker.code_intelligence.treesitter_parser import (
    ImportBinding,
    ImportStatement,
    ParsedModule,
)
from barrel_breaker.utils.logger import logger


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass(frozen=True)
class NamedImport:
    """A `name as alias` entry of a generated import."""
    name: str                              # Name exported by the target module
    alias: str                             # Local name in the importing module
    is_type_only: bool = False


@dataclass
class ImportGroup:
    """
    Bindings imported from one specifier.

    Named bindings are keyed by their local alias: a local name can only be
    bound once per module, and a repeated alias replaces the earlier entry.
    """
    specifier: str
    type_only: bool = False
    default: Optional[str] = None
    namespace: Optional[str] = None
    named: Dict[str, NamedImport] = field(default_factory=dict)

    def add_default(self, local: str) -> None:
        if self.default is None or self.default == local:
            self.default = local
        else:
            # a second default from the same module stays importable by name
            self.add_named(NamedImport("default", local, self.type_only))

    def add_named(self, named: NamedImport) -> None:
        if named.name == "default" and self.default is None \
                and (self.type_only or not named.is_type_only):
            self.default = named.alias
            return
        self.named[named.alias] = named

    def is_empty(self) -> bool:
        return self.default is None and self.namespace is None and not self.named


@dataclass
class RewriteFragment:
    """Planning result for one import statement."""
    statement: ImportStatement
    groups: List[ImportGroup] = field(default_factory=list)
    residual: Optional[ImportGroup] = None
    bindings_updated: int = 0

    @property
    def changed(self) -> bool:
        return self.bindings_updated > 0


@dataclass
class RewritePlan:
    """
    Planned import changes for one module.

    Attributes:
        module: Module the plan applies to
        groups: Rewritten bindings by (specifier, type-only), first-seen order
        removals: Original import statements to delete
        residuals: Imports that keep unmoved bindings under their old specifier
        bindings_updated: Number of bindings moved
    """
    module: ParsedModule
    groups: Dict[Tuple[str, bool], ImportGroup] = field(default_factory=dict)
    removals: List[ImportStatement] = field(default_factory=list)
    residuals: List[ImportGroup] = field(default_factory=list)
    bindings_updated: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.removals)

    @property
    def statements_rewritten(self) -> int:
        return len(self.removals)

    def add(self, fragment: RewriteFragment) -> None:
        """Merge a changed statement's fragment into the plan."""
        if not fragment.changed:
            return

        self.removals.append(fragment.statement)
        self.bindings_updated += fragment.bindings_updated
        if fragment.residual is not None:
            self.residuals.append(fragment.residual)

        for group in fragment.groups:
            key = (group.specifier, group.type_only)
            merged = self.groups.get(key)
            if merged is None:
                self.groups[key] = group
                continue
            if group.default is not None:
                merged.add_default(group.default)
            for named in group.named.values():
                merged.add_named(named)


# =============================================================================
# PLANNER
# =============================================================================

class RewritePlanner:
    """
    Plans import rewrites for modules of a run.

    Usage:
        planner = RewritePlanner(context)
        plan = planner.plan_module(module)
        if plan.changed:
            ...
    """

    def __init__(self, context: RunContext):
        self.context = context
        self.analyzer = ImportAnalyzer(context)
        self.export_maps = ExportMapBuilder(context)

    def plan_module(self, module: ParsedModule) -> RewritePlan:
        """Plan the rewrite of every barrel import in `module`."""
        plan = RewritePlan(module=module)

        for classification in self.analyzer.analyze(module):
            if not classification.is_barrel:
                continue

            export_map = self.export_maps.build(classification.target)
            fragment = self.plan_statement(module, classification, export_map)
            if fragment.changed:
                logger.statement_rewritten(
                    classification.statement.specifier,
                    [g.specifier for g in fragment.groups],
                )
            plan.add(fragment)

        return plan

    def plan_statement(
        self,
        module: ParsedModule,
        classification: ImportClassification,
        export_map: ExportMap,
    ) -> RewriteFragment:
        """
        Plan one barrel import statement.

        Args:
            module: Module containing the import
            classification: A local_barrel classification of the statement
            export_map: Export map of the barrel the statement imports

        Returns:
            RewriteFragment with the moved groups and the residual import
        """
        statement = classification.statement
        target = classification.target
        original = statement.specifier

        fragment = RewriteFragment(statement=statement)
        groups: Dict[str, ImportGroup] = {}
        kept_default: Optional[str] = None
        kept_named: List[ImportBinding] = []

        def group_for(specifier: str) -> ImportGroup:
            if specifier not in groups:
                groups[specifier] = ImportGroup(specifier=specifier, type_only=statement.is_type_only)
            return groups[specifier]

        if statement.default is not None:
            binding = statement.default
            resolution = self.context.project.resolve_export(target, "default")
            resolved = self._moved_specifier(module, classification, resolution, binding)
            if resolved is None:
                kept_default = binding.local_alias
            else:
                group = group_for(resolved)
                if resolution.local_name == "default":
                    group.add_default(binding.local_alias)
                else:
                    group.add_named(NamedImport(resolution.local_name, binding.local_alias, binding.is_type_only))
                fragment.bindings_updated += 1

        for binding in statement.named:
            resolution = self.lookup_named(target, export_map, binding.imported_name)
            resolved = self._moved_specifier(module, classification, resolution, binding)
            if resolved is None:
                kept_named.append(binding)
                continue

            if resolution.local_name != binding.imported_name:
                logger.binding_renamed(binding.imported_name, resolution.local_name)
            group_for(resolved).add_named(
                NamedImport(resolution.local_name, binding.local_alias, binding.is_type_only)
            )
            fragment.bindings_updated += 1

        if not fragment.changed:
            return fragment

        fragment.groups = list(groups.values())

        residual = ImportGroup(specifier=original, type_only=statement.is_type_only)
        residual.namespace = statement.namespace
        if kept_default is not None:
            residual.default = kept_default
        for binding in kept_named:
            residual.named[binding.local_alias] = NamedImport(
                binding.imported_name, binding.local_alias, binding.is_type_only
            )
        if not residual.is_empty():
            fragment.residual = residual

        self.context.bindings_updated += fragment.bindings_updated
        self.context.statements_rewritten += 1
        return fragment

    # =========================================================================
    # RESOLUTION HELPERS
    # =========================================================================

    @staticmethod
    def lookup_named(target: ParsedModule, export_map: ExportMap, name: str) -> SymbolResolution:
        """
        Resolve a named import of a barrel against the barrel's export map.

        Names the barrel declares or exports itself are FOUND_IN_MODULE: the
        barrel is impure and those imports stay on the barrel.
        """
        entry = export_map.get(name)
        if entry is not None:
            return SymbolResolution.via_reexport(entry.defining_module, entry.local_name)
        if name in target.exported_names():
            return SymbolResolution.in_module(target.path, name)
        return SymbolResolution.not_found()

    def _moved_specifier(
        self,
        module: ParsedModule,
        classification: ImportClassification,
        resolution: SymbolResolution,
        binding: ImportBinding,
    ) -> Optional[str]:
        """Specifier a binding moves to, or None if it stays where it is."""
        name = binding.imported_name
        if resolution.kind == FOUND_IN_MODULE:
            logger.binding_kept(name, "is declared in the barrel itself")
            return None
        if resolution.kind != FOUND_VIA_REEXPORT:
            logger.binding_kept(name, "not found in exports")
            return None

        resolved = self.specifier_for(module, resolution.defining_module, classification.is_alias_import)
        logger.binding_resolved(name, str(resolution.defining_module), resolved)
        if resolved == classification.statement.specifier:
            return None
        return resolved

    def specifier_for(self, module: ParsedModule, defining_module: Path, is_alias_import: bool) -> str:
        """
        Specifier that imports `defining_module` from `module`.

        Aliased imports stay aliased when the file sits under an alias target;
        otherwise the relative path is used.
        """
        if is_alias_import:
            aliased = self.context.alias_table.resolve_alias(defining_module)
            if aliased is not None:
                return aliased
        return relative_specifier(module.path, defining_module)
