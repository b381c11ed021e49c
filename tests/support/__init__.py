"""Support code for Strivia tests."""
