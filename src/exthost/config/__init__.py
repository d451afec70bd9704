"""Settings, logging setup, and configuration models."""
