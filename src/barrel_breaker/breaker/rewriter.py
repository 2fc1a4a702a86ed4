"""
Rendering and applying rewrite plans.

Only import statements change: planned removals are cut out together with
their line break, and the generated imports (residual imports first, then
rewritten groups in first-seen order) are inserted where the last surviving
import statement ends. Everything else in the file is kept byte for byte.
"""

import re
from typing import List, Tuple

from barrel_breaker.breaker.planner import ImportGroup, NamedImport, RewritePlan

IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")


def _render_named(named: NamedImport, group_type_only: bool) -> str:
    name = named.name if IDENTIFIER_RE.match(named.name) else f"'{named.name}'"
    text = name if named.name == named.alias else f"{name} as {named.alias}"
    if named.is_type_only and not group_type_only:
        text = f"type {text}"
    return text


def render_group(group: ImportGroup, quote: str = "'", semicolon: bool = True) -> List[str]:
    """
    Render an ImportGroup as import statement lines.

    Usually one line; a type-only group with both a default and named
    bindings needs two, since `import type A, { B }` is not valid TypeScript.
    """
    end = ";" if semicolon else ""
    keyword = "import type" if group.type_only else "import"
    source = f"{quote}{group.specifier}{quote}"

    named = ""
    if group.named:
        named = "{ " + ", ".join(_render_named(n, group.type_only) for n in group.named.values()) + " }"

    head = []
    if group.default:
        head.append(group.default)
    if group.namespace:
        head.append(f"* as {group.namespace}")

    if group.type_only and head and named:
        return [
            f"{keyword} {', '.join(head)} from {source}{end}",
            f"{keyword} {named} from {source}{end}",
        ]

    parts = head + ([named] if named else [])
    return [f"{keyword} {', '.join(parts)} from {source}{end}"]


def plan_style(plan: RewritePlan) -> Tuple[str, bool]:
    """Quote character and semicolon use of the statements being replaced."""
    if not plan.removals:
        return "'", True
    first = plan.removals[0]
    return first.quote, first.has_semicolon


def import_lines(plan: RewritePlan) -> List[str]:
    """All import lines a plan generates, in insertion order."""
    quote, semicolon = plan_style(plan)
    lines = []
    for group in list(plan.residuals) + list(plan.groups.values()):
        lines.extend(render_group(group, quote, semicolon))
    return lines


def _line_extent(source: bytes, start: int, end: int) -> Tuple[int, int]:
    """Extend [start, end) over trailing blanks and one line break."""
    while end < len(source) and source[end:end + 1] in (b" ", b"\t"):
        end += 1
    if source[end:end + 2] == b"\r\n":
        end += 2
    elif source[end:end + 1] == b"\n":
        end += 1
    return start, end


def apply_plan(plan: RewritePlan) -> str:
    """
    Produce the rewritten text of the plan's module.

    Returns:
        New module text; the original text when the plan changes nothing
    """
    module = plan.module
    source = module.source
    if not plan.changed:
        return module.text

    newline = b"\r\n" if b"\r\n" in source else b"\n"
    inserted = newline.join(line.encode("utf-8") for line in import_lines(plan)) + newline

    removed_ids = {id(stmt) for stmt in plan.removals}
    removals = sorted(
        (_line_extent(source, stmt.start_byte, stmt.end_byte) for stmt in plan.removals),
        key=lambda extent: extent[0],
    )
    survivors = [stmt for stmt in module.imports if id(stmt) not in removed_ids]

    # (start, end, replacement) edits, applied back to front
    edits = [[start, end, b""] for start, end in removals]
    if survivors:
        last = max(survivors, key=lambda stmt: stmt.end_byte)
        _, insert_at = _line_extent(source, last.start_byte, last.end_byte)
        if insert_at == last.end_byte:
            # last import has no line break after it
            inserted = newline + inserted.rstrip(b"\r\n")
        edits.append([insert_at, insert_at, inserted])
    else:
        edits[0][2] = inserted

    result = source
    for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1]), reverse=True):
        result = result[:start] + replacement + result[end:]
    return result.decode("utf-8")
