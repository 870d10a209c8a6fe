"""FinTrack Core - personal finance backend with rotating refresh-token sessions."""

__version__ = "0.1.0"
