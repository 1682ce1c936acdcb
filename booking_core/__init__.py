"""Booking core: conflict detection, slot availability and booking lifecycle."""

__version__ = "1.0.0"
