"""Wrappers around the JDK ``jpackage`` tool."""
