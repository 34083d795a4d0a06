"""Mod-mail relay logic linking members' direct messages to staff forum threads."""

__version__ = "0.1.0"