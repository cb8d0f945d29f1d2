"""HR Bridge: field mapping and integration compiler for HR systems."""

__version__ = "0.1.0"
