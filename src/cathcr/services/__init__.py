"""Transcription services."""
