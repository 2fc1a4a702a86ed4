"""
Tree-sitter based parsing of TypeScript / JavaScript modules.

Extracts the module-level structure the import rewriter needs: import
statements with their bindings, export statements (re-exports, local export
clauses, default exports), the names a module declares at top level, and the
byte range of every top-level statement so rewrites can splice text.

This is the lowest layer of the engine. It takes a single file and returns
structured data about what it imports, exports and declares.
"""

import importlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from barrel_breaker.errors import ParseError


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass(frozen=True)
class ImportBinding:
    """
    One imported symbol within an import statement.

    Examples:
        import Foo from './foo'             -> ImportBinding("default", "Foo", is_default=True)
        import { bar as baz } from './bar'  -> ImportBinding("bar", "baz")
        import { type T } from './types'    -> ImportBinding("T", "T", is_type_only=True)
    """
    imported_name: str                     # Name as exported by the target module
    local_alias: str                       # Name used inside the importing file
    is_default: bool = False
    is_type_only: bool = False


@dataclass
class ImportStatement:
    """A top-level `import ... from '...'` statement."""
    specifier: Optional[str]               # None for `import x = require(...)`
    start_byte: int
    end_byte: int
    text: str
    line: int                              # 1-based line number
    default: Optional[ImportBinding] = None
    named: list = field(default_factory=list)   # list[ImportBinding]
    namespace: Optional[str] = None        # local name of `* as ns`
    is_type_only: bool = False             # `import type ...`
    quote: str = "'"
    has_semicolon: bool = True

    @property
    def bindings(self) -> List[ImportBinding]:
        bindings = [self.default] if self.default else []
        return bindings + list(self.named)


@dataclass(frozen=True)
class ExportSpecifier:
    """One `name as alias` entry of an export clause."""
    name: str                              # Name in the module the clause refers to
    alias: Optional[str] = None            # Export-side alias, if any
    is_type_only: bool = False

    @property
    def exported_name(self) -> str:
        return self.alias or self.name


@dataclass
class ExportStatement:
    """
    A top-level export statement.

    kind is one of:
        "star"        export * from './x'
        "namespace"   export * as ns from './x'
        "named"       export { a, b as c } [from './x']
        "default"     export default ...
        "declaration" export const / function / class / interface ...
        "assignment"  export = x / export as namespace X
    """
    kind: str
    start_byte: int
    end_byte: int
    line: int
    specifier: Optional[str] = None
    specifiers: list = field(default_factory=list)   # list[ExportSpecifier]
    namespace_name: Optional[str] = None
    declared_names: list = field(default_factory=list)
    default_local: Optional[str] = None    # identifier in `export default ident`
    is_type_only: bool = False

    @property
    def has_module_specifier(self) -> bool:
        return self.specifier is not None


@dataclass(frozen=True)
class TopLevelStatement:
    node_type: str
    start_byte: int
    end_byte: int
    is_reexport: bool = False


@dataclass
class ParsedModule:
    """
    Complete parse result for a single module.

    The module is never mutated; rewrites produce new text from `source`.
    """
    path: Path
    language: str
    source: bytes
    statements: list = field(default_factory=list)   # list[TopLevelStatement]
    imports: list = field(default_factory=list)      # list[ImportStatement]
    exports: list = field(default_factory=list)      # list[ExportStatement]
    declarations: set = field(default_factory=set)   # top-level declared names
    has_errors: bool = False

    @property
    def text(self) -> str:
        return self.source.decode("utf-8")

    @property
    def reexports(self) -> List[ExportStatement]:
        return [e for e in self.exports if e.has_module_specifier]

    @property
    def is_barrel(self) -> bool:
        """A module with at least one export statement that has a module specifier."""
        return any(e.has_module_specifier for e in self.exports)

    def import_bindings(self) -> Dict[str, Tuple[ImportStatement, ImportBinding]]:
        """Map each locally bound import name to its statement and binding."""
        bound = {}
        for stmt in self.imports:
            for binding in stmt.bindings:
                bound[binding.local_alias] = (stmt, binding)
        return bound

    def exported_names(self) -> set:
        """Names this module exports itself, i.e. without a module specifier."""
        names = set()
        for export in self.exports:
            if export.has_module_specifier:
                continue
            if export.kind == "named":
                names.update(spec.exported_name for spec in export.specifiers)
            elif export.kind == "declaration":
                names.update(export.declared_names)
            elif export.kind == "default":
                names.add("default")
        return names


# =============================================================================
# LANGUAGE CONFIGURATION
# =============================================================================

EXTENSION_TO_LANGUAGE: dict = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".js": "typescript",
    ".mjs": "typescript",
    ".cjs": "typescript",
    ".tsx": "tsx",
    ".jsx": "tsx",
}

# Grammar package and the function returning its language pointer
LANGUAGE_TO_MODULE: dict = {
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
}

SKIPPED_NODES = {"comment", "hash_bang_line"}

DECLARATION_NODES = {
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "module",
    "internal_module",
}

VARIABLE_NODES = {"lexical_declaration", "variable_declaration"}


# =============================================================================
# PARSER CLASS
# =============================================================================

class TreeSitterParser:
    """
    TypeScript / TSX parser using tree-sitter grammars.

    Loads grammars lazily on first use per language.

    Usage:
        parser = TreeSitterParser()
        module = parser.parse_file("/project/src/index.ts")
        for stmt in module.imports:
            print(stmt.specifier, [b.local_alias for b in stmt.bindings])
    """

    def __init__(self) -> None:
        self._parsers: dict = {}
        self._languages: dict = {}

    @staticmethod
    def supports(path: Union[str, Path]) -> bool:
        return Path(path).suffix.lower() in EXTENSION_TO_LANGUAGE

    def parse_file(self, file_path: Union[str, Path]) -> ParsedModule:
        """
        Parse a single file from disk.

        Args:
            file_path: Path to the file

        Returns:
            ParsedModule for the file

        Raises:
            ParseError: If the file type is unsupported or the file can't be read
        """
        path = Path(file_path)
        language = EXTENSION_TO_LANGUAGE.get(path.suffix.lower())
        if language is None:
            raise ParseError(f"Unsupported file type: {path}")

        try:
            source = path.read_bytes()
        except OSError as e:
            raise ParseError(f"Cannot read {path}: {e}") from e

        return self.parse_source(source, path, language=language)

    def parse_source(
        self,
        source: Union[str, bytes],
        path: Union[str, Path],
        language: Optional[str] = None,
    ) -> ParsedModule:
        """
        Parse in-memory source as if it lived at `path`.

        Args:
            source: Module source text
            path: Path the module is identified by
            language: Grammar to use (default: derived from the extension)
        """
        path = Path(path)
        if isinstance(source, str):
            source = source.encode("utf-8")
        else:
            try:
                source.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseError(f"{path} is not valid UTF-8: {e}") from e

        language = language or EXTENSION_TO_LANGUAGE.get(path.suffix.lower(), "typescript")
        tree = self._get_parser(language).parse(source)

        module = ParsedModule(path=path, language=language, source=source)
        module.has_errors = tree.root_node.has_error
        self._extract_module(tree.root_node, module)
        return module

    def _get_parser(self, language: str):
        """Lazily load and cache a tree-sitter Parser for the given language."""
        if language in self._parsers:
            return self._parsers[language]

        import tree_sitter

        language_obj = self._load_language(language)
        parser = tree_sitter.Parser()
        parser.language = language_obj

        self._languages[language] = language_obj
        self._parsers[language] = parser
        return parser

    def _load_language(self, language: str):
        """Load a tree-sitter Language from the corresponding pip package."""
        import tree_sitter

        if language not in LANGUAGE_TO_MODULE:
            raise ParseError(f"No grammar configured for language: {language}")

        module_name, func_name = LANGUAGE_TO_MODULE[language]
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise ParseError(f"Grammar package '{module_name}' is not installed") from e

        return tree_sitter.Language(getattr(module, func_name)())

    # =========================================================================
    # MODULE EXTRACTION
    # =========================================================================

    def _extract_module(self, root, module: ParsedModule) -> None:
        for node in root.named_children:
            if node.type in SKIPPED_NODES:
                continue

            is_reexport = False
            if node.type == "import_statement":
                module.imports.append(self._extract_import(node))
            elif node.type == "export_statement":
                export = self._extract_export(node)
                module.exports.append(export)
                module.declarations.update(export.declared_names)
                is_reexport = export.has_module_specifier
            else:
                module.declarations.update(_declared_names(node))

            module.statements.append(
                TopLevelStatement(
                    node_type=node.type,
                    start_byte=node.start_byte,
                    end_byte=node.end_byte,
                    is_reexport=is_reexport,
                )
            )

    def _extract_import(self, node) -> ImportStatement:
        source_node = _source_node(node)
        specifier, quote = _string_value(source_node) if source_node is not None else (None, "'")

        stmt = ImportStatement(
            specifier=specifier,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            text=_text(node),
            line=node.start_point[0] + 1,
            is_type_only=_has_token(node, "type"),
            quote=quote,
            has_semicolon=_has_token(node, ";"),
        )

        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is None:
            return stmt

        for child in clause.named_children:
            if child.type == "identifier":
                local = _text(child)
                stmt.default = ImportBinding(
                    imported_name="default",
                    local_alias=local,
                    is_default=True,
                    is_type_only=stmt.is_type_only,
                )
            elif child.type == "namespace_import":
                ident = next((c for c in child.named_children if c.type == "identifier"), None)
                if ident is not None:
                    stmt.namespace = _text(ident)
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    binding = _import_binding(spec, stmt.is_type_only)
                    if binding is not None:
                        stmt.named.append(binding)

        return stmt

    def _extract_export(self, node) -> ExportStatement:
        export = ExportStatement(
            kind="assignment",
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            line=node.start_point[0] + 1,
            is_type_only=_has_token(node, "type"),
        )

        source_node = _source_node(node)
        if source_node is not None:
            export.specifier, _quote = _string_value(source_node)

        namespace_node = next((c for c in node.named_children if c.type == "namespace_export"), None)
        clause = next((c for c in node.named_children if c.type == "export_clause"), None)

        if namespace_node is not None:
            export.kind = "namespace"
            names = [c for c in namespace_node.named_children]
            if names:
                export.namespace_name = _name_text(names[-1])
        elif clause is not None:
            export.kind = "named"
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name_node = spec.child_by_field_name("name")
                if name_node is None:
                    continue
                alias_node = spec.child_by_field_name("alias")
                export.specifiers.append(
                    ExportSpecifier(
                        name=_name_text(name_node),
                        alias=_name_text(alias_node) if alias_node is not None else None,
                        is_type_only=export.is_type_only or _has_token(spec, "type"),
                    )
                )
        elif export.specifier is not None and _has_token(node, "*"):
            export.kind = "star"
        elif _has_token(node, "default"):
            export.kind = "default"
            declaration = node.child_by_field_name("declaration")
            value = node.child_by_field_name("value")
            if declaration is not None:
                export.declared_names = _declared_names(declaration)
            elif value is not None and value.type == "identifier":
                export.default_local = _text(value)
        else:
            declaration = node.child_by_field_name("declaration")
            if declaration is not None:
                export.kind = "declaration"
                export.declared_names = _declared_names(declaration)

        return export


# =============================================================================
# NODE HELPERS
# =============================================================================

def _text(node) -> str:
    return node.text.decode("utf-8")


def _has_token(node, token: str) -> bool:
    """True if `node` has a direct anonymous child token of the given type."""
    return any(not c.is_named and c.type == token for c in node.children)


def _name_text(node) -> str:
    """Text of an identifier, or the value of a string module export name."""
    if node.type == "string":
        return _string_value(node)[0]
    return _text(node)


def _string_value(node) -> Tuple[str, str]:
    """Return (value, quote character) for a string literal node."""
    raw = _text(node)
    if len(raw) >= 2 and raw[0] in "'\"" and raw[-1] == raw[0]:
        return raw[1:-1], raw[0]
    return raw, "'"


def _source_node(node):
    source = node.child_by_field_name("source")
    if source is not None:
        return source
    from_clause = next((c for c in node.children if c.type == "from_clause"), None)
    if from_clause is not None:
        return from_clause.child_by_field_name("source")
    return None


def _import_binding(spec, statement_type_only: bool) -> Optional[ImportBinding]:
    name_node = spec.child_by_field_name("name")
    if name_node is None:
        return None
    alias_node = spec.child_by_field_name("alias")
    name = _name_text(name_node)
    return ImportBinding(
        imported_name=name,
        local_alias=_text(alias_node) if alias_node is not None else name,
        is_type_only=statement_type_only or _has_token(spec, "type"),
    )


def _declared_names(node) -> List[str]:
    """Names introduced at module scope by a declaration node."""
    if node.type in DECLARATION_NODES:
        name_node = node.child_by_field_name("name")
        return [_text(name_node)] if name_node is not None else []

    if node.type in VARIABLE_NODES:
        names = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is not None:
                names.extend(_pattern_names(name_node))
        return names

    if node.type == "ambient_declaration":
        names = []
        for child in node.named_children:
            names.extend(_declared_names(child))
        return names

    return []


def _pattern_names(node) -> List[str]:
    """Identifiers bound by a (possibly destructuring) binding pattern."""
    if node.type in ("identifier", "shorthand_property_identifier_pattern"):
        return [_text(node)]
    if node.type == "pair_pattern":
        value = node.child_by_field_name("value")
        return _pattern_names(value) if value is not None else []
    if node.type in ("assignment_pattern", "object_assignment_pattern"):
        left = node.child_by_field_name("left")
        return _pattern_names(left) if left is not None else []
    names = []
    for child in node.named_children:
        names.extend(_pattern_names(child))
    return names
