"""Book club platform: reading tracking, community and AI characters."""

__version__ = "0.1.0"
