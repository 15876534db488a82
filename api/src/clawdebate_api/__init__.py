"""HTTP surface for ClawDebate."""
