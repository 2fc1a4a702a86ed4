"""
Export maps - where each symbol re-exported by a barrel really lives.

For a barrel module the export map maps every exported name to the module
that declares it and the name it is declared under there:

    // modules/index.ts
    export { named } from './named-export';
    export * from './nested';

    // modules/nested/index.ts
    export { actualNested as nested } from './nested-export';

    build(modules/index.ts) ->
        "named"  -> ExportEntry("named", "named", modules/named-export.ts)
        "nested" -> ExportEntry("nested", "actualNested", modules/nested/nested-export.ts)

A star re-export forwards both the star target's own exports and its re-exports.
Maps are memoized on the RunContext for the whole run. Re-export cycles are
cut by a visiting set owned by each top-level build() call.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Set

from barrel_breaker.breaker.context import RunContext
from barrel_breaker.code_intelligence.treesitter_parser import ParsedModule
from barrel_breaker.utils.logger import logger


@dataclass(frozen=True)
class ExportEntry:
    """
    One entry of a resolved export map.

    Attributes:
        exported_name: Public name the barrel exposes
        local_name: Name the defining module exports the symbol under
        defining_module: Absolute path of the module that declares the symbol
    """
    exported_name: str
    local_name: str
    defining_module: Path


ExportMap = Dict[str, ExportEntry]


class ExportMapBuilder:
    """
    Builds and caches export maps for barrel modules.

    Usage:
        builder = ExportMapBuilder(context)
        export_map = builder.build(barrel_module)
        entry = export_map.get("Button")
    """

    def __init__(self, context: RunContext):
        self.context = context

    def build(self, module: ParsedModule) -> ExportMap:
        """Return the export map of `module`, computing it on first request."""
        return self._build(module, set())

    def _build(self, module: ParsedModule, visiting: Set[Path]) -> ExportMap:
        cache = self.context.export_maps
        if module.path in cache:
            return cache[module.path]

        if module.path in visiting:
            logger.export_cycle(str(module.path))
            return {}

        visiting.add(module.path)
        try:
            export_map: ExportMap = {}
            for export in module.reexports:
                target = self._resolve_target(module, export.specifier)
                if target is None:
                    logger.reexport_unresolved(str(module.path), export.specifier)
                    continue

                if export.kind == "star":
                    nested = dict(self._build(target, visiting))
                    # names the target exports itself shadow its own star re-exports
                    for name in sorted(target.exported_names()):
                        nested[name] = self._declared_entry(target, name, name)
                    for exported_name, entry in nested.items():
                        # export * never forwards a default export
                        if exported_name != "default":
                            export_map[exported_name] = entry

                elif export.kind == "named":
                    nested = self._build(target, visiting) if target.is_barrel else {}
                    own_names = target.exported_names()
                    for spec in export.specifiers:
                        # the target's own exports shadow its star re-exports
                        inner = None if spec.name in own_names else nested.get(spec.name)
                        if inner is not None:
                            export_map[spec.exported_name] = ExportEntry(
                                exported_name=spec.exported_name,
                                local_name=inner.local_name,
                                defining_module=inner.defining_module,
                            )
                        else:
                            export_map[spec.exported_name] = self._declared_entry(
                                target, spec.exported_name, spec.name
                            )

                # `export * as ns` creates a namespace object, which has no
                # declaration site to point an import at
        finally:
            visiting.discard(module.path)

        cache[module.path] = export_map
        logger.export_map_built(str(module.path), len(export_map))
        return export_map

    def _resolve_target(self, module: ParsedModule, specifier: str) -> Optional[ParsedModule]:
        project = self.context.project
        target = project.resolve_module(module, specifier)
        if target is None:
            target = project.probe_reexport(module, specifier)
        return target

    def _declared_entry(self, target: ParsedModule, exported_name: str, name: str) -> ExportEntry:
        """Entry for `name` exported by `target`, pointing at its declaration site."""
        resolution = self.context.project.resolve_export(target, name)
        if resolution.found:
            return ExportEntry(
                exported_name=exported_name,
                local_name=resolution.local_name,
                defining_module=resolution.defining_module,
            )
        return ExportEntry(exported_name=exported_name, local_name=name, defining_module=target.path)
