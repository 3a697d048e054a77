"""StackBench: startup and benchmark toolkit for Ollama + n8n-MCP stacks."""

__version__ = "0.1.0"
