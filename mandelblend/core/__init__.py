"""Core types: configuration, errors, complex-plane math and rasters."""
