"""
tsconfig.json loading.

Reads `compilerOptions.paths` and `compilerOptions.baseUrl` into an
AliasTable. tsconfig files are JSON with comments and trailing commas, so
both are stripped before decoding. `extends` chains are not followed.
"""

import json
from pathlib import Path
from typing import Union

from barrel_breaker.code_intelligence.aliases import AliasTable
from barrel_breaker.errors import TsconfigError
from barrel_breaker.utils.logger import logger


def _scan(text: str):
    """Yield (index, char, in_string) for each character of JSON text."""
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            yield i, ch, True
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
            yield i, ch, True
            continue
        yield i, ch, False


def strip_jsonc(text: str) -> str:
    """
    Remove // and /* */ comments and trailing commas from JSONC text.

    String literals are copied untouched, so patterns such as "@/*" survive.
    """
    out = []
    i = 0
    n = len(text)
    in_string = False

    while i < n:
        ch = text[i]

        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
        elif ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            newline = text.find("\n", i)
            i = n if newline == -1 else newline
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1
    text = "".join(out)

    # drop commas that only whitespace separates from a closer
    out = []
    for i, ch, in_string in _scan(text):
        if ch == "," and not in_string:
            rest = text[i + 1:].lstrip()
            if rest[:1] in ("}", "]"):
                continue
        out.append(ch)
    return "".join(out)


def load_alias_table(tsconfig_path: Union[str, Path]) -> AliasTable:
    """
    Build the alias table for a run.

    A missing tsconfig is not fatal: a warning is logged and an empty table
    rooted at the tsconfig's directory is returned (its `config_path` is None).

    Raises:
        TsconfigError: If the file exists but is not valid JSON(C)
    """
    path = Path(tsconfig_path).resolve()
    tsconfig_dir = path.parent

    if not path.is_file():
        logger.warning(
            "init",
            f"tsconfig.json not found at {tsconfig_path}. Proceeding with default configuration.",
        )
        return AliasTable.empty(tsconfig_dir)

    try:
        data = json.loads(strip_jsonc(path.read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        raise TsconfigError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise TsconfigError(f"{path} does not contain a JSON object")

    compiler_options = data.get("compilerOptions") or {}
    paths = compiler_options.get("paths") or {}
    base_url = compiler_options.get("baseUrl")
    base_dir = (tsconfig_dir / base_url).resolve() if base_url else tsconfig_dir

    table = AliasTable(
        base_dir=base_dir,
        paths={alias: list(targets) for alias, targets in paths.items() if targets},
        config_path=path,
    )
    logger.aliases_loaded(table.prefixes, table.paths)
    return table
