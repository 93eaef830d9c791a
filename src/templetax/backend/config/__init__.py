"""YAML-backed configuration for the portal backend."""
