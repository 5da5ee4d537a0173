"""DependViz CLI: query, slice, and filter code dependency graphs."""

__version__ = "0.3.0"


class DependVizError(Exception):
    """Base class for errors raised by the dependviz core."""
