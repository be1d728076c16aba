"""Reproducible application packaging around jpackage, WiX and InnoSetup."""

__version__ = "0.1.0"
