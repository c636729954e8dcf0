"""Iconforge CLI — Typer-based command-line interface."""
