"""Utility modules: configuration, constants, validators and time helpers."""
