"""Recurrence expansion engine.

Turns a stored reminder template into the concrete occurrences that fall inside
a time window. Pure functions only: no I/O, no caching, no mutation of the
template. Callers own visibility filtering and merging across templates.
"""
