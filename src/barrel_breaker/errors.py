"""
Exceptions raised by barrel-breaker.

Unresolved specifiers and symbols are not errors: they are ordinary terminal
states of resolution and never raise. These exceptions cover the cases that
stop a file or a run.
"""


class BarrelBreakerError(Exception):
    """Base exception for barrel-breaker errors"""

    pass


class ParseError(BarrelBreakerError):
    """Raised when a source file cannot be read or parsed"""

    pass


class TsconfigError(BarrelBreakerError):
    """Raised when tsconfig.json exists but cannot be decoded"""

    pass


class WriteError(BarrelBreakerError):
    """Raised when a rewritten module cannot be written back"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to write {path}: {reason}")
        self.path = path
        self.reason = reason
