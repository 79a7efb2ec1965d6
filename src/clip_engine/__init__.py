"""Clip Engine - video-to-clip processing backend."""

__version__ = "0.1.0"
