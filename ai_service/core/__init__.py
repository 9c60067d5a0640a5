"""Configuration, logging, errors and shared provider interfaces."""
