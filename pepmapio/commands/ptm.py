"""
Commands that read modified peptide sequences: PTM extraction and sequence stripping.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from pepmapio.core.common import PTM_MASS
from pepmapio.core.format import NORMALIZED_SCHEMA
from pepmapio.core.ptm import ModificationFormat, obtain_mod, strip_sequence
from pepmapio.core.validation import validate_normalized_data
from pepmapio.utils.file_utils import read_table, write_table
from pepmapio.utils.logger import get_logger

FORMAT_CHOICE = click.Choice([fmt.value for fmt in ModificationFormat], case_sensitive=False)


@click.command(
    "extract-mods",
    short_help="Extract one row per PTM from a column of modified sequences",
)
@click.option(
    "--input-file",
    help="Search engine result table (csv, tsv/txt or parquet)",
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
    "--mod-column",
    help="Column holding the modified sequences or modification lists",
    required=True,
)
@click.option(
    "--format",
    "modification_format",
    help="Modification notation of the search engine",
    required=True,
    type=FORMAT_CHOICE,
)
@click.option(
    "--seq-column",
    help="Plain peptide column, required for MSFragger, mzIdenML and mzTab",
)
@click.option(
    "--ptm-table",
    help="Table mapping PTM masses to PTM_type; enables annotation",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--ptm-mass-column",
    help="Name of the mass column in the output and in the PTM table",
    default=PTM_MASS,
    show_default=True,
)
@click.option("--verbose", help="Enable verbose logging", is_flag=True)
def extract_mods_cmd(
    input_file: Path,
    output_file: Path,
    mod_column: str,
    modification_format: str,
    seq_column: Optional[str],
    ptm_table: Optional[Path],
    ptm_mass_column: str,
    verbose: bool = False,
):
    """
    Normalize engine-specific modified sequences into PTM rows.

    Every input row becomes one row per modification (or a single row with
    empty PTM columns when unmodified), carrying PTM_position, the PTM mass,
    reps and PTM_type.

    Example:
        pepmapio extract-mods \\
            --input-file psm.tsv \\
            --output-file ptm.parquet \\
            --mod-column "Assigned Modifications" \\
            --seq-column Peptide \\
            --format MSFragger
    """
    logger = get_logger("pepmapio.commands.ptm")
    if verbose:
        logging.getLogger("pepmapio").setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    try:
        data = read_table(input_file)
        table = read_table(ptm_table) if ptm_table else None

        result = obtain_mod(
            data,
            mod_column,
            modification_format,
            seq_column=seq_column,
            ptm_table=table,
            ptm_annotation=table is not None,
            ptm_mass_column=ptm_mass_column,
        )
        for problem in validate_normalized_data(result, ptm_mass_column):
            logger.warning(problem)

        write_table(result, output_file, NORMALIZED_SCHEMA)
        logger.info(f"PTM table successfully saved to: {output_file}")

    except Exception as e:
        logger.error(f"Error in PTM extraction: {str(e)}", exc_info=True)
        raise click.ClickException(f"Error: {str(e)}\nCheck the logs for more details.")


@click.command(
    "strip",
    short_help="Add a column with the residue-only peptide sequence",
)
@click.option(
    "--input-file",
    help="Table with a modified sequence column (csv, tsv/txt or parquet)",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output-file",
    help="Output table; the format follows the extension",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option("--column", help="Column holding the modified sequences", required=True)
@click.option(
    "--convert-column",
    help="Name of the new stripped-sequence column",
    default="Sequence",
    show_default=True,
)
@click.option(
    "--format",
    "modification_format",
    help="Modification notation of the search engine",
    required=True,
    type=FORMAT_CHOICE,
)
@click.option("--verbose", help="Enable verbose logging", is_flag=True)
def strip_cmd(
    input_file: Path,
    output_file: Path,
    column: str,
    convert_column: str,
    modification_format: str,
    verbose: bool = False,
):
    """
    Strip modification annotations and flanks from a modified sequence column.

    Example:
        pepmapio strip \\
            --input-file db.psms.csv \\
            --output-file stripped.csv \\
            --column Peptide \\
            --format PEAKS
    """
    logger = get_logger("pepmapio.commands.ptm")
    if verbose:
        logging.getLogger("pepmapio").setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    try:
        data = read_table(input_file)
        result = strip_sequence(data, column, convert_column, modification_format)
        write_table(result, output_file)
        logger.info(f"Stripped sequences successfully saved to: {output_file}")

    except Exception as e:
        logger.error(f"Error in sequence stripping: {str(e)}", exc_info=True)
        raise click.ClickException(f"Error: {str(e)}\nCheck the logs for more details.")
