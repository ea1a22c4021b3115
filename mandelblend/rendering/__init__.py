"""Colouring, compositing and image persistence."""
