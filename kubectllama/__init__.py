"""Generate kubectl commands from natural language with a local Ollama model."""

__version__ = "0.3.0"
