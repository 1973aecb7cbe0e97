"""infralint – rule-based checks for infrastructure configuration files."""

__version__ = "0.1.0"
