"""Clean delimited text files: recover the encoding, repair the grid, re-serialize canonically."""

__version__ = "0.1.0"
