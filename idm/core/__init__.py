"""Domain layer: errors, validation, persistence and services."""
