"""Command-line helpers for SharePoint document libraries via Microsoft Graph."""

__version__ = "0.1.0"
