"""
Tests for path aliases, specifier computation and tsconfig loading.

Run with: pytest tests/test_aliases.py -v
"""

import json
import logging
import textwrap
from pathlib import Path

import pytest

from barrel_breaker.code_intelligence.aliases import AliasTable, relative_specifier, strip_extension
from barrel_breaker.code_intelligence.tsconfig import load_alias_table, strip_jsonc
from barrel_breaker.errors import TsconfigError


@pytest.fixture
def table(tmp_path):
    return AliasTable(
        base_dir=tmp_path,
        paths={
            "@components/*": ["./src/components/*"],
            "@/*": ["src/*"],
            "@config": ["src/config.ts"],
        },
    )


# =============================================================================
# ALIAS TABLE
# =============================================================================

class TestAliasTable:
    """Matching, expanding and reverse-mapping aliases."""

    def test_is_alias_specifier(self, table):
        assert table.is_alias_specifier("@components/button")
        assert table.is_alias_specifier("@components")
        assert table.is_alias_specifier("@/utils/format")
        assert table.is_alias_specifier("@config")
        assert not table.is_alias_specifier("react")
        assert not table.is_alias_specifier("@angular/core")

    def test_prefixes(self, table):
        assert table.prefixes == ["@components", "@", "@config"]

    def test_expand_wildcard(self, table, tmp_path):
        assert table.expand("@components/button") == [tmp_path / "src" / "components" / "button"]

    def test_expand_bare_alias_to_directory(self, table, tmp_path):
        assert table.expand("@components") == [tmp_path / "src" / "components"]

    def test_expand_unknown_specifier(self, table):
        assert table.expand("lodash") == []

    def test_resolve_alias(self, table, tmp_path):
        path = tmp_path / "src" / "components" / "button.ts"
        assert table.resolve_alias(path) == "@components/button"

    def test_first_declared_alias_wins(self, table, tmp_path):
        # src/components/* also sits under "@/*", declared later
        path = tmp_path / "src" / "components" / "forms" / "input.tsx"
        assert table.resolve_alias(path) == "@components/forms/input"

    def test_resolve_alias_falls_through_to_later_alias(self, table, tmp_path):
        assert table.resolve_alias(tmp_path / "src" / "utils" / "format.ts") == "@/utils/format"

    def test_wildcard_alias_declared_first_beats_exact_alias(self, table, tmp_path):
        assert table.resolve_alias(tmp_path / "src" / "config.ts") == "@/config"

    def test_exact_alias(self, tmp_path):
        table = AliasTable(base_dir=tmp_path, paths={"@config": ["src/config.ts"]})
        assert table.resolve_alias(tmp_path / "src" / "config.ts") == "@config"
        assert table.expand("@config") == [tmp_path / "src" / "config.ts"]

    def test_path_outside_aliases(self, table, tmp_path):
        assert table.resolve_alias(tmp_path / "scripts" / "build.ts") is None

    def test_segment_boundary(self, tmp_path):
        table = AliasTable(base_dir=tmp_path, paths={"@lib/*": ["lib/*"]})
        assert table.resolve_alias(tmp_path / "library" / "x.ts") is None

    def test_empty_table(self, tmp_path):
        table = AliasTable.empty(tmp_path)
        assert not table
        assert not table.is_alias_specifier("@components/button")
        assert table.config_path is None


# =============================================================================
# SPECIFIERS
# =============================================================================

class TestSpecifiers:
    """Relative specifiers and extension handling."""

    def test_relative_specifier_child(self):
        assert relative_specifier("/repo/src/app.ts", "/repo/src/modules/named.ts") == "./modules/named"

    def test_relative_specifier_parent(self):
        assert relative_specifier("/repo/src/pages/home.tsx", "/repo/src/lib/api.ts") == "../lib/api"

    def test_relative_specifier_sibling(self):
        assert relative_specifier("/repo/src/a.ts", "/repo/src/b.tsx") == "./b"

    def test_strip_extension(self):
        assert strip_extension("types.d.ts") == "types"
        assert strip_extension("button.tsx") == "button"
        assert strip_extension("data.json") == "data.json"


# =============================================================================
# TSCONFIG LOADING
# =============================================================================

TSCONFIG_JSONC = textwrap.dedent("""\
    {
      // editor settings
      "compilerOptions": {
        /* aliases */
        "baseUrl": ".",
        "paths": {
          "@/*": ["./src/*"],
          "@components/*": ["./src/components/*"], // trailing comment
        },
      },
    }
""")


class TestTsconfig:
    """Reading compilerOptions.paths from tsconfig.json."""

    def test_strip_jsonc_keeps_string_contents(self):
        data = json.loads(strip_jsonc(TSCONFIG_JSONC))
        paths = data["compilerOptions"]["paths"]
        assert paths["@/*"] == ["./src/*"]
        assert list(paths) == ["@/*", "@components/*"]

    def test_strip_jsonc_escaped_quote(self):
        assert json.loads(strip_jsonc('{"a": "x\\"//y"}')) == {"a": 'x"//y'}

    def test_load_alias_table(self, tmp_path):
        config = tmp_path / "tsconfig.json"
        config.write_text(TSCONFIG_JSONC, encoding="utf-8")

        table = load_alias_table(config)

        assert table.config_path == config.resolve()
        assert table.base_dir == tmp_path.resolve()
        assert table.resolve_alias(tmp_path.resolve() / "src" / "hooks" / "useUser.ts") == "@/hooks/useUser"

    def test_base_url_moves_targets(self, tmp_path):
        config = tmp_path / "tsconfig.json"
        config.write_text(json.dumps({
            "compilerOptions": {"baseUrl": "./src", "paths": {"~/*": ["*"]}},
        }), encoding="utf-8")

        table = load_alias_table(config)

        assert table.base_dir == (tmp_path / "src").resolve()
        assert table.expand("~/lib/api") == [Path((tmp_path / "src" / "lib" / "api").resolve())]

    def test_missing_tsconfig_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="barrel_breaker"):
            table = load_alias_table(tmp_path / "tsconfig.json")

        assert not table
        assert table.config_path is None
        assert "tsconfig.json not found" in caplog.text

    def test_no_paths(self, tmp_path):
        config = tmp_path / "tsconfig.json"
        config.write_text('{"compilerOptions": {"strict": true}}', encoding="utf-8")
        table = load_alias_table(config)
        assert not table
        assert table.config_path is not None

    def test_malformed_tsconfig_raises(self, tmp_path):
        config = tmp_path / "tsconfig.json"
        config.write_text('{"compilerOptions": ', encoding="utf-8")
        with pytest.raises(TsconfigError):
            load_alias_table(config)
