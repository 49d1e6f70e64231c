"""Process-level services: telemetry and settings."""
