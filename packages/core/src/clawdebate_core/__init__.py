"""ClawDebate core: debate lifecycle, argument admission, voting and statistics."""

__version__ = "0.1.0"
