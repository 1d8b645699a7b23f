"""Configuration loading, resolution and document output."""
