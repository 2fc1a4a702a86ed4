"""
Barrel breaker engine - resolve barrel imports to their defining modules.
"""

from barrel_breaker.breaker.analyzer import ImportAnalyzer, ImportClassification
from barrel_breaker.breaker.context import RunContext
from barrel_breaker.breaker.export_map import ExportEntry, ExportMapBuilder
from barrel_breaker.breaker.planner import ImportGroup, RewritePlan, RewritePlanner
from barrel_breaker.breaker.purge import PurgeResult, is_pure_barrel, purge_barrels, scan_barrels
from barrel_breaker.breaker.rewriter import apply_plan, render_group
from barrel_breaker.breaker.runner import RunSummary, run_barrel_breaker

__all__ = [
    "ImportAnalyzer",
    "ImportClassification",
    "RunContext",
    "ExportEntry",
    "ExportMapBuilder",
    "ImportGroup",
    "RewritePlan",
    "RewritePlanner",
    "PurgeResult",
    "is_pure_barrel",
    "purge_barrels",
    "scan_barrels",
    "apply_plan",
    "render_group",
    "RunSummary",
    "run_barrel_breaker",
]
