"""
Tests for module resolution, declaration lookup and export maps.

Run with: pytest tests/test_export_map.py -v
"""

import logging
import textwrap

import pytest

from barrel_breaker.breaker.context import RunContext
from barrel_breaker.breaker.export_map import ExportEntry, ExportMapBuilder
from barrel_breaker.code_intelligence.aliases import AliasTable
from barrel_breaker.code_intelligence.project import (
    FOUND_IN_MODULE,
    FOUND_VIA_REEXPORT,
    NOT_FOUND,
    ModuleResolver,
    Project,
)


NESTED_PROJECT = {
    "src/app.ts": """\
        import { named, nested } from './modules';
    """,
    "src/modules/index.ts": """\
        export { named } from './named-export';
        export * from './nested';
    """,
    "src/modules/named-export.ts": """\
        export const named = 'named';
    """,
    "src/modules/nested/index.ts": """\
        export { actualNested as nested } from './nested-export';
    """,
    "src/modules/nested/nested-export.ts": """\
        export const actualNested = 'nested';
    """,
}


def build_context(root) -> RunContext:
    return RunContext(alias_table=AliasTable.empty(root))


# =============================================================================
# MODULE RESOLUTION
# =============================================================================

class TestModuleResolver:
    """Specifier to file resolution."""

    def test_resolves_extension_and_index(self, make_files):
        root = make_files(NESTED_PROJECT)
        resolver = ModuleResolver(AliasTable.empty(root))
        app = root / "src" / "app.ts"

        assert resolver.resolve(app, "./modules") == (root / "src/modules/index.ts").resolve()
        assert resolver.resolve(app, "./modules/named-export") == (root / "src/modules/named-export.ts").resolve()

    def test_js_extension_maps_to_ts_source(self, make_files):
        root = make_files(NESTED_PROJECT)
        resolver = ModuleResolver(AliasTable.empty(root))
        found = resolver.resolve(root / "src" / "app.ts", "./modules/named-export.js")
        assert found == (root / "src/modules/named-export.ts").resolve()

    def test_external_and_missing(self, make_files):
        root = make_files(NESTED_PROJECT)
        resolver = ModuleResolver(AliasTable.empty(root))
        app = root / "src" / "app.ts"
        assert resolver.resolve(app, "react") is None
        assert resolver.resolve(app, "./missing") is None

    def test_alias_resolution(self, make_files):
        root = make_files({
            "src/components/index.ts": "export { Button } from './button';\n",
            "src/components/button.ts": "export const Button = 1;\n",
        })
        table = AliasTable(base_dir=root, paths={"@components/*": ["./src/components/*"]})
        resolver = ModuleResolver(table)
        importer = root / "src" / "app.ts"

        assert resolver.resolve(importer, "@components") == (root / "src/components/index.ts").resolve()
        assert resolver.resolve(importer, "@components/button") == (root / "src/components/button.ts").resolve()

    def test_project_parses_each_module_once(self, make_files):
        root = make_files(NESTED_PROJECT)
        project = Project(AliasTable.empty(root))
        first = project.get_module(root / "src/modules/index.ts")
        second = project.get_module(root / "src" / "modules" / ".." / "modules" / "index.ts")
        assert first is second

    def test_unreadable_module_is_none(self, tmp_path):
        path = tmp_path / "broken.ts"
        path.write_bytes(b"\xff\xfe\x00")
        project = Project(AliasTable.empty(tmp_path))
        assert project.get_module(path) is None

    def test_syntax_errors_are_logged(self, make_files, caplog):
        root = make_files({"broken.ts": "import { a from './a';\n"})
        project = Project(AliasTable.empty(root))

        with caplog.at_level(logging.WARNING, logger="barrel_breaker"):
            module = project.get_module(root / "broken.ts")

        assert module is not None
        assert "Syntax errors in" in caplog.text


# =============================================================================
# DECLARATION LOOKUP
# =============================================================================

class TestResolveExport:
    """Tagged declaration lookup through re-exports."""

    def test_found_in_module(self, make_files):
        root = make_files(NESTED_PROJECT)
        project = Project(AliasTable.empty(root))
        module = project.get_module(root / "src/modules/named-export.ts")

        resolution = project.resolve_export(module, "named")

        assert resolution.kind == FOUND_IN_MODULE
        assert resolution.local_name == "named"

    def test_found_via_nested_reexport(self, make_files):
        root = make_files(NESTED_PROJECT)
        project = Project(AliasTable.empty(root))
        barrel = project.get_module(root / "src/modules/index.ts")

        resolution = project.resolve_export(barrel, "nested")

        assert resolution.kind == FOUND_VIA_REEXPORT
        assert resolution.defining_module == (root / "src/modules/nested/nested-export.ts").resolve()
        assert resolution.local_name == "actualNested"

    def test_default_through_named_reexport(self, make_files):
        root = make_files({
            "ui/index.ts": "export { default } from './card';\n",
            "ui/card.ts": "export default function Card() {}\n",
        })
        project = Project(AliasTable.empty(root))
        barrel = project.get_module(root / "ui/index.ts")

        resolution = project.resolve_export(barrel, "default")

        assert resolution.kind == FOUND_VIA_REEXPORT
        assert resolution.defining_module == (root / "ui/card.ts").resolve()
        assert resolution.local_name == "default"

    def test_star_never_forwards_default(self, make_files):
        root = make_files({
            "lib/index.ts": "export * from './a';\n",
            "lib/a.ts": "export const a = 1;\nexport default a;\n",
        })
        project = Project(AliasTable.empty(root))
        barrel = project.get_module(root / "lib/index.ts")

        assert project.resolve_export(barrel, "default").kind == NOT_FOUND
        assert project.resolve_export(barrel, "a").found

    def test_local_export_of_imported_binding(self, make_files):
        root = make_files({
            "lib/index.ts": "import { helper } from './helper';\nexport { helper as util };\n",
            "lib/helper.ts": "export function helper() {}\n",
        })
        project = Project(AliasTable.empty(root))
        module = project.get_module(root / "lib/index.ts")

        resolution = project.resolve_export(module, "util")

        assert resolution.kind == FOUND_VIA_REEXPORT
        assert resolution.defining_module == (root / "lib/helper.ts").resolve()
        assert resolution.local_name == "helper"

    def test_default_export_of_local_binding(self, make_files):
        root = make_files({
            "ui/index.ts": "export { default } from './card';\n",
            "ui/card.ts": "const Card = () => null;\nexport default Card;\n",
        })
        project = Project(AliasTable.empty(root))
        barrel = project.get_module(root / "ui/index.ts")

        resolution = project.resolve_export(barrel, "default")

        assert resolution.kind == FOUND_VIA_REEXPORT
        assert resolution.defining_module == (root / "ui/card.ts").resolve()
        assert resolution.local_name == "default"

    def test_renamed_local_export_resolves_to_exported_name(self, make_files):
        root = make_files({"lib/m.ts": "const foo = 1;\nexport { foo as bar };\n"})
        project = Project(AliasTable.empty(root))
        module = project.get_module(root / "lib/m.ts")

        resolution = project.resolve_export(module, "bar")

        assert resolution.kind == FOUND_IN_MODULE
        assert resolution.local_name == "bar"

    def test_cycle_is_not_found(self, make_files):
        root = make_files({
            "a.ts": "export { x } from './b';\n",
            "b.ts": "export { x } from './a';\n",
        })
        project = Project(AliasTable.empty(root))
        module = project.get_module(root / "a.ts")

        assert project.resolve_export(module, "x").kind == NOT_FOUND


# =============================================================================
# EXPORT MAPS
# =============================================================================

class TestExportMapBuilder:
    """Resolved export maps of barrel modules."""

    def test_nested_barrel(self, make_files):
        root = make_files(NESTED_PROJECT)
        context = build_context(root)
        barrel = context.project.get_module(root / "src/modules/index.ts")

        export_map = ExportMapBuilder(context).build(barrel)

        assert export_map == {
            "named": ExportEntry("named", "named", (root / "src/modules/named-export.ts").resolve()),
            "nested": ExportEntry("nested", "actualNested", (root / "src/modules/nested/nested-export.ts").resolve()),
        }

    def test_named_reexport_flattens_nested_barrel(self, make_files):
        root = make_files({
            "index.ts": "export { Button as PrimaryButton } from './components';\n",
            "components/index.ts": "export { Button } from './button';\n",
            "components/button.ts": "export const Button = 1;\n",
        })
        context = build_context(root)
        barrel = context.project.get_module(root / "index.ts")

        entry = ExportMapBuilder(context).build(barrel)["PrimaryButton"]

        assert entry.local_name == "Button"
        assert entry.defining_module == (root / "components/button.ts").resolve()

    def test_named_reexport_prefers_targets_own_export(self, make_files):
        root = make_files({
            "lib/index.ts": "export { foo } from './mid';\n",
            "lib/mid.ts": "export * from './x';\nexport const foo = 'mid';\n",
            "lib/x.ts": "export const foo = 'x';\n",
        })
        context = build_context(root)
        barrel = context.project.get_module(root / "lib/index.ts")

        entry = ExportMapBuilder(context).build(barrel)["foo"]

        assert entry == ExportEntry("foo", "foo", (root / "lib/mid.ts").resolve())

    def test_star_skips_default(self, make_files):
        root = make_files({
            "lib/index.ts": "export * from './inner';\n",
            "lib/inner/index.ts": "export { default, value } from './impl';\n",
            "lib/inner/impl.ts": "export const value = 1;\nexport default value;\n",
        })
        context = build_context(root)
        barrel = context.project.get_module(root / "lib/index.ts")

        export_map = ExportMapBuilder(context).build(barrel)

        assert set(export_map) == {"value"}

    def test_star_reexport_of_leaf_module(self, make_files):
        root = make_files({
            "components/index.ts": "export * from './button';\n",
            "components/button.ts": textwrap.dedent("""\
                import { tokens } from '../theme';
                export function Button() {}
                export { tokens as buttonTokens };
                export default Button;
            """),
            "theme.ts": "export const tokens = {};\n",
        })
        context = build_context(root)
        barrel = context.project.get_module(root / "components/index.ts")

        export_map = ExportMapBuilder(context).build(barrel)

        assert set(export_map) == {"Button", "buttonTokens"}
        assert export_map["Button"].defining_module == (root / "components/button.ts").resolve()
        assert export_map["buttonTokens"] == ExportEntry("buttonTokens", "tokens", (root / "theme.ts").resolve())

    def test_namespace_reexport_is_not_mapped(self, make_files):
        root = make_files({
            "index.ts": "export * as helpers from './helpers';\nexport { a } from './a';\n",
            "helpers.ts": "export const h = 1;\n",
            "a.ts": "export const a = 1;\n",
        })
        context = build_context(root)
        barrel = context.project.get_module(root / "index.ts")

        assert set(ExportMapBuilder(context).build(barrel)) == {"a"}

    def test_unresolved_reexport_is_skipped(self, make_files):
        root = make_files({
            "index.ts": "export { gone } from './missing';\nexport { a } from './a';\n",
            "a.ts": "export const a = 1;\n",
        })
        context = build_context(root)
        barrel = context.project.get_module(root / "index.ts")

        assert set(ExportMapBuilder(context).build(barrel)) == {"a"}

    def test_reexport_cycle_terminates(self, make_files):
        root = make_files({
            "a/index.ts": "export * from '../b';\nexport { one } from './one';\n",
            "a/one.ts": "export const one = 1;\n",
            "b/index.ts": "export * from '../a';\nexport { two } from './two';\n",
            "b/two.ts": "export const two = 2;\n",
        })
        context = build_context(root)
        builder = ExportMapBuilder(context)
        a = context.project.get_module(root / "a/index.ts")
        b = context.project.get_module(root / "b/index.ts")

        a_map = builder.build(a)
        b_map = builder.build(b)

        assert set(a_map) == {"one", "two"}
        assert "two" in b_map

    def test_maps_are_memoized_on_context(self, make_files):
        root = make_files(NESTED_PROJECT)
        context = build_context(root)
        builder = ExportMapBuilder(context)
        barrel = context.project.get_module(root / "src/modules/index.ts")

        first = builder.build(barrel)

        assert builder.build(barrel) is first
        assert context.export_maps[barrel.path] is first
        # nested barrel maps are cached along the way
        assert (root / "src/modules/nested/index.ts").resolve() in context.export_maps

    @pytest.mark.parametrize("ext", [".ts", ".tsx"])
    def test_reexport_extension_probing(self, make_files, ext):
        root = make_files({
            "index.ts": "export { Widget } from './widget';\n",
            f"widget{ext}": "export const Widget = 1;\n",
        })
        context = build_context(root)
        barrel = context.project.get_module(root / "index.ts")

        entry = ExportMapBuilder(context).build(barrel)["Widget"]

        assert entry.defining_module == (root / f"widget{ext}").resolve()
