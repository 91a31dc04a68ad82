"""Houndsite documentation site generator.

This package builds the ChunkHound documentation site: Markdown and Jinja
pages rendered through a small docs theme, with a sidebar, social links,
Open Graph head tags and a redirect table, all driven by one site
configuration record.

The main entry point is the CLI module, which provides commands for scaffolding
a docs project, checking its configuration, building it and serving it locally
with live reload.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
