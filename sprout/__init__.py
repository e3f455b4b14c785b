"""sprout - Flutter plugin scaffolding."""

__version__ = "0.3.0"
