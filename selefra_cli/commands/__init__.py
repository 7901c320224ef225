"""Command implementations for the selefra CLI."""
