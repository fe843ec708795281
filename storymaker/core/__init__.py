"""Core (UI-free) layer: models, tree queries, serialization and services."""
