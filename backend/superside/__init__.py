"""In-memory relay for service state-change events."""

__version__ = "0.1.0"
