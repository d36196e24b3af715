"""Core configuration, enumerations and exceptions."""
