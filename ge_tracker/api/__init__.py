"""
ge_tracker.api — Input-validation boundary for callers of the core.

HTTP routing lives outside this package; handlers validate payloads with
``ge_tracker.api.schemas`` before any calculator or store runs.
"""
