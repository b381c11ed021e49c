"""Tests for Strivia data models."""
