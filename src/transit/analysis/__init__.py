"""Conversion graph analysis: catalog, registry, and closure."""
