"""Local web editor for the Markdown posts of a Hugo blog."""

__version__ = '0.1.0'
