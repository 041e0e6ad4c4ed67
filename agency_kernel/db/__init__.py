"""Database plumbing: declarative base and engine/session management."""
