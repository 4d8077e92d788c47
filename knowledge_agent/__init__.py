"""Retrieval-augmented conversational agent with knowledge grounding."""

__version__ = "0.1.0"
