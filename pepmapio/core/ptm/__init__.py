from pepmapio.core.ptm.base import (
    Modification,
    ModificationAdapter,
    ModificationFormat,
    get_adapter,
    register_adapter,
)

# Importing the implementations registers them
from pepmapio.core.ptm import bracket, delimited  # noqa: F401
from pepmapio.core.ptm.normalizer import obtain_mod, strip_sequence

__all__ = [
    "Modification",
    "ModificationAdapter",
    "ModificationFormat",
    "get_adapter",
    "register_adapter",
    "obtain_mod",
    "strip_sequence",
]
