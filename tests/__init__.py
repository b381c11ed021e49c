"""Tests for Strivia."""
