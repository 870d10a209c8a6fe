"""HTTP API package for FinTrack Core."""
