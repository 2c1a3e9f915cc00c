"""AI security maturity scoring engine."""

__version__ = "0.1.0"
