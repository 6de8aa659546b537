"""
Resolution Engine Package.

Single entry point for turning a commodity name into a valid
price record: cache, then live sources, then example data.
"""

from resolution_engine.engine import ResolutionEngine


__all__ = [
    "ResolutionEngine",
]
