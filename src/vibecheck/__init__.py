"""vibecheck - scope contracts and compliance review for agent-driven changes."""

__version__ = "0.1.0"
