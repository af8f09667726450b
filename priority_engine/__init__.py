"""Communication priority and VIP intelligence engine."""

__version__ = "0.1.0"
