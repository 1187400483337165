"""Configuration, logging and process execution plumbing."""
