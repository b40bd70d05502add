import pyarrow as pa

NORMALIZED_FIELDS = [
    pa.field(
        "PTM_position",
        pa.int64(),
        nullable=True,
        metadata={
            "description": "Position of the modification within the stripped peptide, null when the peptide is unmodified"
        },
    ),
    pa.field(
        "reps",
        pa.int64(),
        metadata={
            "description": "Number of rows produced from the same input row (one per modification)"
        },
    ),
    pa.field(
        "PTM_type",
        pa.string(),
        nullable=True,
        metadata={
            "description": "Modification type looked up from the PTM table, null when not annotated or not found"
        },
    ),
]

POSITIONED_FIELDS = [
    pa.field(
        "start",
        pa.int64(),
        metadata={"description": "1-based first residue of the peptide in the reference sequence"},
    ),
    pa.field(
        "end",
        pa.int64(),
        metadata={"description": "1-based last residue (inclusive) of the peptide in the reference sequence"},
    ),
]

COUNT_FIELDS = [
    pa.field(
        "count",
        pa.int64(),
        metadata={"description": "PSM or peptide count; renamed to the quantification method"},
    ),
]

COVERAGE_FIELDS = [
    pa.field(
        "Character",
        pa.string(),
        metadata={"description": "Residue letter of the reference sequence"},
    ),
    pa.field(
        "Position",
        pa.int64(),
        metadata={"description": "1-based residue position in the reference sequence"},
    ),
]

NORMALIZED_SCHEMA = pa.schema(
    NORMALIZED_FIELDS,
    metadata={"description": "normalized PTM table in pepmapio format"},
)
POSITIONED_SCHEMA = pa.schema(
    POSITIONED_FIELDS,
    metadata={"description": "positioned peptide table in pepmapio format"},
)
COVERAGE_SCHEMA = pa.schema(
    COVERAGE_FIELDS,
    metadata={"description": "residue coverage table in pepmapio format"},
)
