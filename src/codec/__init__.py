"""Trace and header record codecs.

This package turns caller sample and header arrays into the fixed-length
binary records stored in frame objects, and back.
"""
