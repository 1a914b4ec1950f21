"""Cathcr hybrid transcription service."""
