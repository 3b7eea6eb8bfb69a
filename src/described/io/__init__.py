"""IO layer: cache stores and HTTP dispatch."""
