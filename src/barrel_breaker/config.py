"""
Configuration management for barrel-breaker.

Loads settings from environment variables and provides configuration objects.
CLI flags override whatever is set here.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """barrel-breaker configuration."""

    tsconfig: str = "tsconfig.json"
    verbose: bool = False
    colors: bool = False
    log_dir: Optional[str] = None
    log_json: bool = False

    def __init__(self):
        """Initialize config from environment variables."""
        self.tsconfig = os.getenv("BRL_TSCONFIG", "tsconfig.json")
        self.verbose = os.getenv("BRL_VERBOSE", "false").lower() == "true"
        self.colors = os.getenv("BRL_COLORS", "false").lower() == "true"
        self.log_dir = os.getenv("BRL_LOG_DIR") or None
        self.log_json = os.getenv("BRL_LOG_JSON", "false").lower() == "true"
