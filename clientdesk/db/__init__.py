"""Database engine, sessions and seed data."""
