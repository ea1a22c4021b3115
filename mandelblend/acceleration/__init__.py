"""Sequential and column-parallel renderers."""
