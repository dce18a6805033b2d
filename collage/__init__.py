"""Prompt Collage: community collage of AI-generated images."""

__version__ = "0.1.0"
