"""Recovery Lab: decision support for incident-recovery automation."""

__version__ = "0.1.0"
