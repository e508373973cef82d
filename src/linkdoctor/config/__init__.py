"""Configuration loading for linkdoctor."""
