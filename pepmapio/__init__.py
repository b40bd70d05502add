"""
pepmapio - normalize search-engine PTM annotations, map peptides onto
reference sequences and quantify coverage.
"""

__version__ = "0.1.0"
