"""Proposal Relay - form wizard to automation webhook relay."""

__version__ = "1.0.0"
