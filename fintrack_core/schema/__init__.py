"""Database schema for FinTrack Core.

schema.sql is the source of truth for the data model and is applied once by
db.init_db() on a fresh database.
"""
