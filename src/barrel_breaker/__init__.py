"""
barrel-breaker - rewrite barrel imports to point at defining modules.

Resolves every symbol imported through a barrel (index) file to the module
that actually declares it, and purges barrel files that only re-export.
"""

__version__ = "0.1.0"

from barrel_breaker.breaker import purge_barrels, run_barrel_breaker

__all__ = ["purge_barrels", "run_barrel_breaker", "__version__"]
