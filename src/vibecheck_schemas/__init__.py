"""Packaged JSON schemas for vibecheck documents."""
