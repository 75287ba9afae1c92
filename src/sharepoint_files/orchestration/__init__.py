"""Pipeline composition for CLI commands."""
