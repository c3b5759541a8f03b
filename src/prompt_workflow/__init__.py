"""Directory-based workflow orchestrator for prompt artifacts."""

__version__ = "0.1.0"
