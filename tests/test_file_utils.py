import pandas as pd
import pyarrow.parquet as pq
import pytest

from pepmapio import __version__
from pepmapio.core.common import END, PTM_POSITION, START
from pepmapio.core.format import POSITIONED_SCHEMA
from pepmapio.utils.file_utils import read_table, write_table


def test_delimited_tables_keep_text_and_integer_coordinates(tmp_path):
    """Identifiers stay text while coordinate columns come back as integers."""
    path = tmp_path / "matched.tsv"
    pd.DataFrame(
        {
            "Scan": ["007", "008"],
            PTM_POSITION: [2, None],
            START: [3, 8],
            END: [24, 24],
        }
    ).to_csv(path, sep="\t", index=False)

    df = read_table(path)

    assert df["Scan"].tolist() == ["007", "008"]
    assert str(df[PTM_POSITION].dtype) == "Int64"
    assert df[START].tolist() == [3, 8]
    assert pd.isna(df[PTM_POSITION].iloc[1])


def test_parquet_field_descriptions(tmp_path):
    df = pd.DataFrame({"Sequence": ["PEPTIDEK"], START: [1], END: [8]})

    path = write_table(df, tmp_path / "out" / "matched.parquet", POSITIONED_SCHEMA)

    schema = pq.read_schema(str(path))
    assert b"description" in schema.field(START).metadata
    assert schema.field("Sequence").metadata is None
    assert schema.metadata[b"pepmapio_version"] == __version__.encode()
    pd.testing.assert_frame_equal(read_table(path), df)


def test_unsupported_extension(tmp_path):
    with pytest.raises(ValueError, match="supported extension"):
        write_table(pd.DataFrame({"a": [1]}), tmp_path / "out.xlsx")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_table(tmp_path / "absent.csv")
