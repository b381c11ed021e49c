"""Data models for tokens, claims, and keys."""
