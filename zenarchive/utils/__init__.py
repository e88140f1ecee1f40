"""Identifier, metadata, creator and credential helpers."""
