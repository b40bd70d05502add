import pandas as pd
import pytest

from pepmapio.core.common import (
    CHARACTER,
    END,
    PEPTIDE,
    POSITION,
    PSM,
    PTM_FLAG,
    PTM_MASS,
    PTM_POSITION,
    PTM_TYPE,
    REGION_SEQUENCE,
    REPS,
    START,
)
from pepmapio.core.matching import match_and_calculate_positions
from pepmapio.core.ptm import obtain_mod
from pepmapio.core.quantification import (
    QuantifyMethod,
    peptide_quantification,
    residue_coverage,
)
from pepmapio.core.validation import ConfigurationError, validate_count_data


@pytest.fixture
def whole_seq():
    return pd.DataFrame(
        {"Region": ["R1", "R2"], REGION_SEQUENCE: ["PEPTIDEKAAAK", "GGGSSSLLL"]}
    )


@pytest.fixture
def matching_result():
    return pd.DataFrame(
        {
            "Sequence": ["PEPTIDEK", "PEPTIDEK", "AAAK", "PEPTIDEK"],
            "Scan": ["s1", "s2", "s3", "s4"],
            "Condition": ["A", "A", "A", "B"],
            "Donor": ["d1", "d2", "d1", "d1"],
            "Region": ["R1", "R1", "R1", "R1"],
            START: [1, 1, 9, 1],
            END: [8, 8, 12, 8],
        }
    )


@pytest.fixture
def modified_result():
    return pd.DataFrame(
        {
            PTM_POSITION: pd.array([2, 5, None], dtype="Int64"),
            REPS: [2, 2, 1],
            PTM_MASS: ["42", "-0.98", None],
            PTM_TYPE: ["Acet", "Amid", None],
            "Sequence": ["PEPTIDEK", "PEPTIDEK", "AAAK"],
            "Scan": ["s1", "s1", "s3"],
            "Region": ["R1", "R1", "R1"],
            START: [1, 1, 9],
            END: [8, 8, 12],
        }
    )


def _counts(result, count_column):
    keys = [col for col in result.columns if col != count_column]
    return {tuple(row[keys]): row[count_column] for _, row in result.iterrows()}


def test_psm_counts_with_zero_filled_regions(whole_seq, matching_result):
    result = peptide_quantification(
        whole_seq, matching_result, ["Region", "Condition"]
    )

    assert list(result.columns) == ["Region", "Condition", PSM]
    assert _counts(result, PSM) == {
        ("R1", "A"): 3,
        ("R1", "B"): 1,
        ("R2", "A"): 0,
        ("R2", "B"): 0,
    }
    assert result[PSM].dtype == "int64"


def test_peptide_counts_not_inflated_by_duplicates(whole_seq, matching_result):
    """Repeated hits of one sequence count once with the Peptide method."""
    result = peptide_quantification(
        whole_seq, matching_result, ["Region", "Condition"], quantify_method="Peptide"
    )

    assert _counts(result, PEPTIDE) == {
        ("R1", "A"): 2,
        ("R1", "B"): 1,
        ("R2", "A"): 0,
        ("R2", "B"): 0,
    }


def test_distinct_columns_count_donors(whole_seq, matching_result):
    result = peptide_quantification(
        whole_seq, matching_result, ["Region", "Condition"], distinct_columns=["Donor"]
    )

    assert _counts(result, PSM) == {
        ("R1", "A"): 2,
        ("R1", "B"): 1,
        ("R2", "A"): 0,
        ("R2", "B"): 0,
    }


def test_by_replicate_breaks_down_distinct_columns(whole_seq, matching_result):
    result = peptide_quantification(
        whole_seq,
        matching_result,
        ["Region", "Condition"],
        distinct_columns=["Donor"],
        by_replicate=True,
    )

    assert list(result.columns) == ["Region", "Condition", "Donor", PSM]
    assert len(result) == 8
    counts = _counts(result, PSM)
    assert counts[("R1", "A", "d1")] == 2
    assert counts[("R1", "A", "d2")] == 1
    assert counts[("R1", "B", "d1")] == 1
    assert counts[("R1", "B", "d2")] == 0
    assert result.loc[result["Region"] == "R2", PSM].sum() == 0


def test_region_only_grouping(whole_seq, matching_result):
    result = peptide_quantification(whole_seq, matching_result, ["Region"])
    assert _counts(result, PSM) == {("R1",): 4, ("R2",): 0}


def test_no_grouping_columns_counts_everything(whole_seq, matching_result):
    result = peptide_quantification(whole_seq, matching_result, [])
    assert result[PSM].tolist() == [4]


def test_expanded_ptm_rows_collapse_without_ptm(whole_seq, modified_result):
    result = peptide_quantification(whole_seq, modified_result, ["Region"])
    assert _counts(result, PSM) == {("R1",): 2, ("R2",): 0}


def test_with_ptm_stratifies_by_type(whole_seq, modified_result):
    result = peptide_quantification(
        whole_seq, modified_result, ["Region"], with_ptm=True
    )

    assert list(result.columns) == ["Region", PTM_POSITION, PTM_TYPE, PSM]
    r1 = result[result["Region"] == "R1"]
    assert len(r1) == 3
    assert set(r1[PTM_TYPE].dropna()) == {"Acet", "Amid"}
    assert r1[PSM].tolist() == [1, 1, 1]
    assert result.loc[result["Region"] == "R2", PSM].tolist() == [0]


def test_with_ptm_falls_back_to_mass(whole_seq, modified_result):
    data = modified_result.drop(columns=[PTM_TYPE])
    result = peptide_quantification(whole_seq, data, ["Region"], with_ptm=True)
    assert PTM_MASS in result.columns


def test_invalid_method(whole_seq, matching_result):
    with pytest.raises(ConfigurationError, match="Supported methods are 'PSM', 'Peptide'"):
        peptide_quantification(
            whole_seq, matching_result, ["Region"], quantify_method="Intensity"
        )


def test_missing_grouping_column(whole_seq, matching_result):
    with pytest.raises(ConfigurationError, match="not found in matching_result"):
        peptide_quantification(whole_seq, matching_result, ["Region", "Timepoint"])


def test_method_names_are_case_insensitive():
    assert QuantifyMethod.from_name("peptide") is QuantifyMethod.PEPTIDE
    assert QuantifyMethod.from_name(QuantifyMethod.PSM) is QuantifyMethod.PSM


def test_count_output_passes_validation(whole_seq, matching_result):
    result = peptide_quantification(whole_seq, matching_result, ["Region", "Condition"])
    assert validate_count_data(result, PSM) == []


def test_residue_coverage_psm(whole_seq, matching_result):
    result = residue_coverage(whole_seq, matching_result, ["Condition"])

    assert list(result.columns) == ["Region", "Condition", CHARACTER, POSITION, PSM]
    assert len(result) == 2 * (12 + 9)

    r1_a = result[(result["Region"] == "R1") & (result["Condition"] == "A")]
    assert "".join(r1_a[CHARACTER]) == "PEPTIDEKAAAK"
    assert r1_a[POSITION].tolist() == list(range(1, 13))
    assert r1_a[PSM].tolist() == [2] * 8 + [1] * 4

    r1_b = result[(result["Region"] == "R1") & (result["Condition"] == "B")]
    assert r1_b[PSM].tolist() == [1] * 8 + [0] * 4
    assert result.loc[result["Region"] == "R2", PSM].sum() == 0


def test_residue_coverage_peptide(whole_seq, matching_result):
    result = residue_coverage(
        whole_seq, matching_result, ["Condition"], quantify_method="Peptide"
    )

    r1_a = result[(result["Region"] == "R1") & (result["Condition"] == "A")]
    assert r1_a[PEPTIDE].tolist() == [1] * 12


def test_residue_coverage_distinct_donors(whole_seq, matching_result):
    result = residue_coverage(
        whole_seq, matching_result, ["Condition"], distinct_columns=["Donor"]
    )

    r1_a = result[(result["Region"] == "R1") & (result["Condition"] == "A")]
    assert r1_a[PSM].tolist() == [2] * 8 + [1] * 4


def test_residue_coverage_marks_ptm_sites(whole_seq, modified_result):
    result = residue_coverage(whole_seq, modified_result, [], with_ptm=True)

    r1 = result[result["Region"] == "R1"].reset_index(drop=True)
    assert r1.loc[r1[PTM_FLAG], POSITION].tolist() == [3, 6]
    assert r1.loc[r1[POSITION] == 3, PTM_TYPE].item() == "Acet"
    assert r1.loc[r1[POSITION] == 6, PTM_TYPE].item() == "Amid"
    assert not result.loc[result["Region"] == "R2", PTM_FLAG].any()


def test_residue_coverage_list_style_positions():
    """List-style formats number residues from 1 and put C-term on the last residue."""
    psms = pd.DataFrame(
        {
            "Assigned Modifications": ["3M(15.9949), C-term(-0.98)"],
            "Peptide": ["AAMDDRK"],
        }
    )
    ptm_table = pd.DataFrame({PTM_MASS: [15.9949, -0.98], PTM_TYPE: ["Ox", "Amid"]})
    reference = pd.DataFrame({"Region": ["R1"], REGION_SEQUENCE: ["GGAAMDDRKGG"]})

    normalized = obtain_mod(
        psms,
        "Assigned Modifications",
        "MSFragger",
        seq_column="Peptide",
        ptm_table=ptm_table,
        ptm_annotation=True,
    )
    matched = match_and_calculate_positions(normalized, "Peptide", reference)
    result = residue_coverage(
        reference, matched, [], with_ptm=True, modification_format="MSFragger"
    )

    marked = result[result[PTM_FLAG]]
    assert marked[CHARACTER].tolist() == ["M", "K"]
    assert marked[POSITION].tolist() == [5, 9]
    assert marked[PTM_TYPE].tolist() == ["Ox", "Amid"]
    assert result.loc[result[PSM] > 0, POSITION].tolist() == list(range(3, 10))
