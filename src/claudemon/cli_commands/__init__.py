"""Command modules registered on the ``claudemon`` click group."""
