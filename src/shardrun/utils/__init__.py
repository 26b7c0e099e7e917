"""Process helpers."""
