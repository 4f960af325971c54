"""Card template designer: layer model, renderers, undo history and batch export."""

__version__ = "0.1.0"
