"""Broken product database repair pipeline."""
