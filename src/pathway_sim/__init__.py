"""pathway-sim: detectability of a known pathway signal across cohort sizes."""

__version__ = "0.1.0"
