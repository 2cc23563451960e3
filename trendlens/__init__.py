"""TrendLens: technology news aggregation, classification and query engine."""

__version__ = "1.0.0"
