"""Emotion recognition backend: frame ingestion, classification and history."""
