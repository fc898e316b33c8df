"""Storage layer.

This package persists committed record batches, the imported-file
ledger, and retained raw archives.
"""
