"""Source file import pipeline.

This package fetches provider archives, flattens their feed documents,
and coordinates at-most-once loading into the batch store.
"""
