"""
Import analysis - which import statements go through a barrel.

Each import statement of a module is classified as:
    external          package import ('react', '@angular/core'), left alone
    unresolved        local specifier that resolves to no file, left alone
    local_non_barrel  local module that only declares its own symbols
    local_barrel      local module with at least one `export ... from`
"""

from dataclasses import dataclass
from typing import List, Optional

from barrel_breaker.breaker.context import RunContext
from barrel_breaker.code_intelligence.treesitter_parser import (
    ImportBinding,
    ImportStatement,
    ParsedModule,
)
from barrel_breaker.utils.logger import logger

EXTERNAL = "external"
UNRESOLVED = "unresolved"
LOCAL_NON_BARREL = "local_non_barrel"
LOCAL_BARREL = "local_barrel"


@dataclass
class ImportClassification:
    """Classification of one import statement."""

    kind: str
    statement: ImportStatement
    target: Optional[ParsedModule] = None
    is_alias_import: bool = False

    @property
    def is_barrel(self) -> bool:
        return self.kind == LOCAL_BARREL

    @property
    def named(self) -> List[ImportBinding]:
        return list(self.statement.named)


class ImportAnalyzer:
    """Classifies the import statements of a module against the project."""

    def __init__(self, context: RunContext):
        self.context = context

    def classify(self, module: ParsedModule, statement: ImportStatement) -> ImportClassification:
        """
        Classify a single import statement of `module`.

        Args:
            module: Module containing the statement
            statement: Import statement to classify

        Returns:
            ImportClassification; `target` is set for local imports that resolve
        """
        specifier = statement.specifier
        project = self.context.project

        if specifier is None:
            logger.import_skipped("", "Import-equals declaration")
            return ImportClassification(UNRESOLVED, statement)

        logger.import_found(specifier, statement.text.strip(), statement.line)

        if not project.is_local_specifier(specifier):
            logger.import_skipped(specifier, "Detected node module import")
            return ImportClassification(EXTERNAL, statement)

        is_alias_import = not specifier.startswith(".")
        target = project.resolve_module(module, specifier)
        if target is None:
            logger.import_skipped(specifier, "Could not resolve source file")
            return ImportClassification(UNRESOLVED, statement, is_alias_import=is_alias_import)

        if not target.is_barrel:
            logger.import_skipped(specifier, "Import path resolved to a non-barrel file")
            return ImportClassification(LOCAL_NON_BARREL, statement, target, is_alias_import)

        logger.barrel_detected(specifier, str(target.path))
        return ImportClassification(LOCAL_BARREL, statement, target, is_alias_import)

    def analyze(self, module: ParsedModule) -> List[ImportClassification]:
        """Classify every import statement of `module`, in file order."""
        return [self.classify(module, statement) for statement in module.imports]
