"""
Command locating stripped peptides in reference sequences.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from pepmapio.core.common import REGION_SEQUENCE
from pepmapio.core.format import POSITIONED_SCHEMA
from pepmapio.core.matching import match_and_calculate_positions
from pepmapio.core.validation import validate_positioned_data
from pepmapio.utils.file_utils import read_table, write_table
from pepmapio.utils.logger import get_logger


@click.command(
    "match",
    short_help="Match peptides against reference sequences and add start/end",
)
@click.option(
    "--input-file",
    help="Table with a stripped-sequence column (csv, tsv/txt or parquet)",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--reference-file",
    help="Reference table with the region sequences and their metadata",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output-file",
    help="Output table; the format follows the extension",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option("--column", help="Stripped-sequence column of the input table", required=True)
@click.option(
    "--sequence-column",
    help="Column of the reference table holding the sequence",
    default=REGION_SEQUENCE,
    show_default=True,
)
@click.option(
    "--match-column",
    "match_columns",
    help="Column that must agree between a row and a reference (repeatable)",
    multiple=True,
)
@click.option(
    "--keep-column",
    "column_keep",
    help="Input column to carry over (repeatable); all columns when omitted",
    multiple=True,
)
@click.option(
    "--min-length",
    help="Minimum peptide length (inclusive)",
    type=int,
)
@click.option(
    "--max-length",
    help="Maximum peptide length (inclusive)",
    type=int,
)
@click.option("--verbose", help="Enable verbose logging", is_flag=True)
def match_cmd(
    input_file: Path,
    reference_file: Path,
    output_file: Path,
    column: str,
    sequence_column: str,
    match_columns: Tuple[str, ...],
    column_keep: Tuple[str, ...],
    min_length: Optional[int],
    max_length: Optional[int],
    verbose: bool = False,
):
    """
    Add 1-based start and end coordinates for every occurrence of each peptide.

    Example:
        pepmapio match \\
            --input-file stripped.csv \\
            --reference-file regions.csv \\
            --output-file matched.parquet \\
            --column Sequence \\
            --match-column Chain \\
            --min-length 7 --max-length 30
    """
    logger = get_logger("pepmapio.commands.match")
    if verbose:
        logging.getLogger("pepmapio").setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    try:
        if (min_length is None) != (max_length is None):
            raise click.UsageError("--min-length and --max-length must be given together")
        sequence_length = None if min_length is None else (min_length, max_length)

        data = read_table(input_file)
        whole_seq = read_table(reference_file)

        result = match_and_calculate_positions(
            data,
            column,
            whole_seq,
            match_columns=list(match_columns) or None,
            sequence_length=sequence_length,
            column_keep=list(column_keep) or None,
            sequence_column=sequence_column,
        )
        for problem in validate_positioned_data(result):
            logger.warning(problem)

        write_table(result, output_file, POSITIONED_SCHEMA)
        logger.info(f"Positioned table successfully saved to: {output_file}")

    except click.UsageError:
        raise
    except Exception as e:
        logger.error(f"Error in sequence matching: {str(e)}", exc_info=True)
        raise click.ClickException(f"Error: {str(e)}\nCheck the logs for more details.")
