"""forgekit - context assembly and mediated file writes for AI code generation."""

__version__ = "0.1.0"
