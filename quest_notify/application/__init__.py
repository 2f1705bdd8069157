"""Application layer orchestrating notification use cases."""
