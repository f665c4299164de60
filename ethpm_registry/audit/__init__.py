"""Audit journal for registry notifications."""
