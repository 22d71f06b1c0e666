"""Storage layer.

This package stores frames of trace and header records in a blob store
and manages the dataset properties document that describes them.
"""
