"""Catalog favorites API: bearer-authenticated favorites layered over a media catalog."""

__version__ = "0.1.0"
