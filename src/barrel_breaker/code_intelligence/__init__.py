"""
Code intelligence module - understand TypeScript module structure.

This module provides the parsing and resolution services the rewrite engine
is built on:
- Tree-sitter parsing of imports, exports and declarations
- Module specifier resolution (relative paths, tsconfig aliases, index files)
- Declaration lookup through re-export chains
"""

from barrel_breaker.code_intelligence.aliases import (
    AliasTable,
    relative_specifier,
    strip_extension,
)

from barrel_breaker.code_intelligence.project import (
    ModuleResolver,
    Project,
    SymbolResolution,
)

from barrel_breaker.code_intelligence.treesitter_parser import (
    ExportStatement,
    ImportBinding,
    ImportStatement,
    ParsedModule,
    TreeSitterParser,
)

from barrel_breaker.code_intelligence.tsconfig import load_alias_table

__all__ = [
    'AliasTable',
    'relative_specifier',
    'strip_extension',
    'ModuleResolver',
    'Project',
    'SymbolResolution',
    'ExportStatement',
    'ImportBinding',
    'ImportStatement',
    'ParsedModule',
    'TreeSitterParser',
    'load_alias_table',
]
