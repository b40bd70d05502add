"""
Commandline interface for the pepmapio package: normalize PTMs from search engine
results, locate peptides on reference sequences and aggregate them into counts.
"""

import logging

import click

from pepmapio import __version__ as __version__
from pepmapio.commands.match import match_cmd
from pepmapio.commands.ptm import extract_mods_cmd, strip_cmd
from pepmapio.commands.quantify import quantify_cmd
from pepmapio.utils.logger import configure_from_env, setup_logging

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


@click.version_option(
    version=__version__, package_name="pepmapio", message="%(package)s %(version)s"
)
@click.group(context_settings=CONTEXT_SETTINGS)
def cli() -> None:
    """
    pepmapio - PTM normalization, peptide mapping and quantification for peptide maps
    """
    logging.basicConfig(
        level=logging.INFO,
        datefmt="%H:%M:%S",
        format="[%(asctime)s] %(levelname).1s | %(name)s | %(message)s",
    )
    config = configure_from_env()
    if "log_file" in config:
        setup_logging(**config)
    else:
        logging.getLogger("pepmapio").setLevel(config["level"].upper())


cli.add_command(extract_mods_cmd, name="extract-mods")
cli.add_command(strip_cmd, name="strip")
cli.add_command(match_cmd, name="match")
cli.add_command(quantify_cmd, name="quantify")


def pepmapio_main() -> None:
    """
    Main function to run the pepmapio command line interface
    :return: none
    """
    cli()


if __name__ == "__main__":
    pepmapio_main()
