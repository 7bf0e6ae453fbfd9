"""Configuration, logging, errors and database helpers."""
