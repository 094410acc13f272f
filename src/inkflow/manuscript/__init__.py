"""Manuscript state engine: segmentation, block store, history and review."""
