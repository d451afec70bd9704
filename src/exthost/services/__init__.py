"""Service layer — the result envelope shared by the CLI and output layers.

Services may import from the host and config layers.
They must never import from commands or output.
"""
