"""Commission calculation engine for deal-based sales organizations."""

__version__ = "0.1.0"
