"""
Structured logging for barrel-breaker runs.

Tracks how each import statement was classified, resolved and rewritten
without cluttering the engine code. Records always go to stderr so stdout
stays free for progress bars and diffs.

When a log directory is configured, records are also written to separate
files for each log level:
  <log_dir>/debug.log
  <log_dir>/info.log
  <log_dir>/warning.log
  <log_dir>/error.log
"""

import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class BreakerLogger:
    """Centralized logger for tracking resolution and rewrite decisions."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self.logger = logging.getLogger("barrel_breaker")
            self.logger.addHandler(logging.NullHandler())
            self.json_mode = False
            self.run_start = time.time()
            self.log_dir = None
            self._initialized = True

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[str] = None,
        json_mode: bool = False,
        stream=None,
    ):
        """
        Configure logging output.

        Args:
            level: DEBUG, INFO, WARNING, ERROR (minimum level to log)
            log_dir: Optional directory for per-level log files
            json_mode: Use JSON format for structured parsing
            stream: Stream for console records (default: stderr)
        """
        self.json_mode = json_mode
        self.logger.handlers.clear()
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        if json_mode:
            formatter = JsonFormatter()
        else:
            formatter = ComponentFormatter("[%(component)-7s] %(message)s")

        min_level = getattr(logging, level.upper(), logging.INFO)

        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(min_level)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if not log_dir:
            self.log_dir = None
            return

        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        file_formatter = formatter if json_mode else ComponentFormatter(
            "%(asctime)s [%(component)-7s] %(message)s", datefmt="%H:%M:%S"
        )

        log_levels = [
            (logging.DEBUG, "debug.log"),
            (logging.INFO, "info.log"),
            (logging.WARNING, "warning.log"),
            (logging.ERROR, "error.log"),
        ]

        for log_level, filename in log_levels:
            if log_level >= min_level:
                handler = logging.FileHandler(self.log_dir / filename, mode="a", encoding="utf-8")
                handler.setLevel(log_level)
                handler.setFormatter(file_formatter)
                # exact level only
                handler.addFilter(lambda record, level=log_level: record.levelno == level)
                self.logger.addHandler(handler)

    def _log(self, level: str, component: str, msg: str, **data):
        """Core logging with structured data."""
        extra = {"component": component, **data}
        getattr(self.logger, level)(msg, extra=extra)

    # === RUN FLOW ===

    def run_start_info(self, input_path: str, tsconfig_path: str, dry_run: bool):
        self.run_start = time.time()
        self._log("debug", "INIT", "=== Initialization ===")
        self._log("debug", "INIT", f"  Input path: {input_path}", input_path=input_path)
        self._log("debug", "INIT", f"  tsconfig path: {tsconfig_path}", tsconfig_path=tsconfig_path)
        self._log("debug", "INIT", f"  Dry run: {dry_run}", dry_run=dry_run)

    def aliases_loaded(self, prefixes: list, paths: dict):
        self._log("debug", "INIT", f"  Alias prefixes: {json.dumps(prefixes)}", prefixes=prefixes)
        self._log("debug", "INIT", f"  Paths: {json.dumps(paths)}")

    def files_collected(self, count: int, pattern: Optional[str] = None):
        if pattern:
            self._log("debug", "INIT", f"  After filtering, {count} file(s) match pattern '{pattern}'.",
                      file_count=count, pattern=pattern)
        else:
            self._log("debug", "INIT", f"  Found {count} source file(s) to process.", file_count=count)

    def run_complete(self, modules: int, statements: int, bindings: int, cancelled: bool):
        elapsed = time.time() - self.run_start
        status = "CANCELLED" if cancelled else "DONE"
        self._log("info", "RUN", f"[{status}] {modules} module(s), {statements} import(s), "
                  f"{bindings} binding(s) in {elapsed:.2f}s",
                  modules=modules, statements=statements, bindings=bindings, cancelled=cancelled)

    # === IMPORT ANALYSIS ===

    def import_found(self, specifier: str, text: str, line: int):
        self._log("debug", "IMPORT", f"  [IMPORT] {specifier} (line {line})", specifier=specifier, line=line)
        self._log("debug", "IMPORT", f"  Original import: {text}")

    def import_skipped(self, specifier: str, reason: str):
        self._log("debug", "IMPORT", f"    {reason}. Skipping rewriting.", specifier=specifier, reason=reason)

    def barrel_detected(self, specifier: str, target: str):
        self._log("debug", "IMPORT", "    Barrel file detected.", specifier=specifier, target=target)

    # === EXPORT MAPS ===

    def export_map_built(self, path: str, size: int):
        self._log("debug", "EXPORTS", f"  Export map for {path}: {size} symbol(s)", file=path, size=size)

    def export_cycle(self, path: str):
        self._log("debug", "EXPORTS", f"  Re-export cycle through {path}; branch skipped", file=path)

    def reexport_unresolved(self, path: str, specifier: str):
        self._log("debug", "EXPORTS", f"  Could not resolve '{specifier}' re-exported by {path}",
                  file=path, specifier=specifier)

    # === PLANNING ===

    def binding_resolved(self, name: str, resolved_file: str, computed: str):
        self._log("debug", "PLAN", f"      Resolved file: '{resolved_file}', computed import: '{computed}'",
                  symbol=name, resolved_file=resolved_file, computed=computed)

    def binding_kept(self, name: str, reason: str):
        self._log("debug", "PLAN", f"      Symbol '{name}' {reason}; leaving as is.", symbol=name, reason=reason)

    def binding_renamed(self, name: str, local_name: str):
        self._log("debug", "PLAN", f"      Re-export mapping applied: '{name}' becomes '{local_name}'",
                  symbol=name, local_name=local_name)

    def statement_rewritten(self, specifier: str, new_lines: list):
        self._log("debug", "PLAN", f"    --> Updating import for '{specifier}'", specifier=specifier)
        for line in new_lines:
            self._log("debug", "PLAN", f"      New import: {line}")

    # === WRITES ===

    def module_updated(self, path: str):
        self._log("debug", "WRITE", f"  Updated imports in {path}", file=path)

    def module_unchanged(self, path: str):
        self._log("debug", "WRITE", f"  No changes needed for {path}", file=path)

    # === PURGE ===

    def barrel_deleted(self, path: str):
        self._log("info", "PURGE", f"Deleted: {path}", file=path)

    # === ERRORS & WARNINGS ===

    def error(self, component: str, message: str, exception: Optional[Exception] = None):
        import traceback

        error_details = message
        if exception:
            tb_str = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
            error_details = f"{message}\n{tb_str}"

        self._log("error", component.upper(), f"ERROR: {error_details}",
                  error=str(exception) if exception else message)

    def warning(self, component: str, message: str):
        self._log("warning", component.upper(), f"WARNING: {message}")


class ComponentFormatter(logging.Formatter):
    """Formatter that tolerates records logged without a component."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "component"):
            record.component = "SYSTEM"
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": getattr(record, "component", "SYSTEM"),
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k not in {"name", "msg", "args", "levelname", "levelno", "pathname",
                         "filename", "module", "exc_info", "exc_text", "stack_info",
                         "lineno", "funcName", "created", "msecs", "relativeCreated",
                         "thread", "threadName", "processName", "process", "message",
                         "component", "asctime", "taskName"}:
                data[k] = v
        return json.dumps(data, default=str)


# Global instance
logger = BreakerLogger()
