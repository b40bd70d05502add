"""
Common constants for pepmapio.
This module provides the stable column names shared by every pipeline stage.
"""

from pepmapio import __version__

PEPMAPIO_VERSION = __version__

# Normalized PTM table
PTM_POSITION = "PTM_position"
PTM_TYPE = "PTM_type"
PTM_MASS = "PTM_mass"
REPS = "reps"

# Positioned table
START = "start"
END = "end"

# Reference table
REGION_SEQUENCE = "Region_Sequence"

# Stripped peptide column used by the quantification defaults
PEPTIDE_SEQUENCE = "Sequence"

# Count table
PSM = "PSM"
PEPTIDE = "Peptide"

# Residue coverage table
CHARACTER = "Character"
POSITION = "Position"
PTM_FLAG = "PTM"

# Terminal tokens used by delimiter-list formats
N_TERM = "N-term"
C_TERM = "C-term"
