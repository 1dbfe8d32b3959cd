"""Command implementations behind the bookkeeper CLI."""
