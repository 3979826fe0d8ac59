"""Terminal chat client with tangent-mode branching and response metrics."""

__version__ = "0.1.0"
