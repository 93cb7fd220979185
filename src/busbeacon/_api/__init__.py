"""Firestore REST endpoint modules (internal)."""
