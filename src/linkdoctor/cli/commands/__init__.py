"""Command registration modules for the linkdoctor CLI."""
