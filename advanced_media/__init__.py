"""Playback and engagement core for the Advanced Media front end."""

__version__ = "0.1.0"
