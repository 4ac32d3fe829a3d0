"""Storage engine layer.

This package persists immutable blobs and named references in an image
layout directory, publishing every write through an atomic rename.
"""
