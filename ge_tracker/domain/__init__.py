"""
ge_tracker.domain — Canonical data models and enumerations.

This package defines the source-of-truth types shared across every layer.
Nothing in here should import from other ge_tracker sub-packages.
"""
