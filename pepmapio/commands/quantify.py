"""
Command aggregating positioned peptides into counts or residue coverage.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from pepmapio.commands.ptm import FORMAT_CHOICE
from pepmapio.core.common import PEPTIDE_SEQUENCE, PTM_MASS, REGION_SEQUENCE
from pepmapio.core.format import COVERAGE_SCHEMA
from pepmapio.core.quantification import (
    QuantifyMethod,
    peptide_quantification,
    residue_coverage,
)
from pepmapio.core.validation import validate_count_data
from pepmapio.utils.file_utils import read_table, write_table
from pepmapio.utils.logger import get_logger


@click.command(
    "quantify",
    short_help="Count PSMs or peptides per reference region and condition",
)
@click.option(
    "--input-file",
    help="Positioned table written by 'pepmapio match'",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--reference-file",
    help="Reference table used for matching",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output-file",
    help="Output table; the format follows the extension",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--matching-column",
    "matching_columns",
    help="Region or condition column to group by (repeatable)",
    multiple=True,
)
@click.option(
    "--distinct-column",
    "distinct_columns",
    help="Column whose distinct values are counted instead of rows (repeatable)",
    multiple=True,
)
@click.option(
    "--method",
    "quantify_method",
    help="Count rows (PSM) or distinct stripped sequences (Peptide)",
    type=click.Choice([method.value for method in QuantifyMethod], case_sensitive=False),
    default=QuantifyMethod.PSM.value,
    show_default=True,
)
@click.option("--with-ptm", help="Stratify counts by PTM position and type", is_flag=True)
@click.option(
    "--by-replicate",
    help="Break counts down by the distinct columns instead of counting them",
    is_flag=True,
)
@click.option(
    "--coverage",
    help="Write per-residue coverage instead of region counts",
    is_flag=True,
)
@click.option(
    "--format",
    "modification_format",
    help="Modification notation the PTM positions were extracted with (coverage only)",
    type=FORMAT_CHOICE,
)
@click.option(
    "--peptide-column",
    help="Stripped-sequence column used by the Peptide method",
    default=PEPTIDE_SEQUENCE,
    show_default=True,
)
@click.option(
    "--ptm-mass-column",
    help="Mass column used when no PTM_type column exists",
    default=PTM_MASS,
    show_default=True,
)
@click.option(
    "--sequence-column",
    help="Column of the reference table holding the sequence",
    default=REGION_SEQUENCE,
    show_default=True,
)
@click.option("--verbose", help="Enable verbose logging", is_flag=True)
def quantify_cmd(
    input_file: Path,
    reference_file: Path,
    output_file: Path,
    matching_columns: Tuple[str, ...],
    distinct_columns: Tuple[str, ...],
    quantify_method: str,
    with_ptm: bool,
    by_replicate: bool,
    coverage: bool,
    modification_format: Optional[str],
    peptide_column: str,
    ptm_mass_column: str,
    sequence_column: str,
    verbose: bool = False,
):
    """
    Aggregate matched peptides into PSM or peptide counts.

    Regions without any match are reported with a count of 0 for every
    observed condition. With --coverage the counts are spread over the
    residues of each reference instead.

    Example:
        pepmapio quantify \\
            --input-file matched.parquet \\
            --reference-file regions.csv \\
            --output-file counts.tsv \\
            --matching-column Region_1 \\
            --matching-column Condition \\
            --distinct-column Donor \\
            --method PSM
    """
    logger = get_logger("pepmapio.commands.quantify")
    if verbose:
        logging.getLogger("pepmapio").setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    try:
        matching_result = read_table(input_file)
        whole_seq = read_table(reference_file)

        options = {"modification_format": modification_format} if coverage else {}
        aggregate = residue_coverage if coverage else peptide_quantification
        result = aggregate(
            whole_seq,
            matching_result,
            list(matching_columns),
            distinct_columns=list(distinct_columns) or None,
            quantify_method=quantify_method,
            with_ptm=with_ptm,
            by_replicate=by_replicate,
            peptide_column=peptide_column,
            ptm_mass_column=ptm_mass_column,
            sequence_column=sequence_column,
            **options,
        )
        count_column = QuantifyMethod.from_name(quantify_method).value
        for problem in validate_count_data(result, count_column):
            logger.warning(problem)

        write_table(result, output_file, COVERAGE_SCHEMA if coverage else None)
        logger.info(f"{count_column} counts successfully saved to: {output_file}")

    except Exception as e:
        logger.error(f"Error in quantification: {str(e)}", exc_info=True)
        raise click.ClickException(f"Error: {str(e)}\nCheck the logs for more details.")
