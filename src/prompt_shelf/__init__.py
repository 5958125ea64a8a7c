"""prompt-shelf: a personal library of reusable text prompts."""

__version__ = "0.1.0"
