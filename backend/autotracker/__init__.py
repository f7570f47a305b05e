"""Clockify auto time-tracking webhook."""

__version__ = "0.1.0"
