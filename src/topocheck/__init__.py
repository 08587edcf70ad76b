"""topocheck - single-replica topology compliance audit."""

__version__ = "0.1.0"
