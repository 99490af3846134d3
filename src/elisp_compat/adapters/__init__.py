"""Drivers that host a runtime inside a user interface."""
