"""Lutra Relay: bidirectional chat relay between live-streaming platforms."""

__version__ = "0.4.0"
