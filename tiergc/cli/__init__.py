"""CLI module for tiergc."""
