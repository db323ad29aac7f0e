"""CodeSentry — client for an AI code-generation and security-scanning service."""

__version__ = "0.1.0"
