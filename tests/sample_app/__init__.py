"""Small application wired through the schema in tests/data/schema."""
