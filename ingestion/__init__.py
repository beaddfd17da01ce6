from typing import List

import ingestion.detailed as detailed
import ingestion.simple as simple

_INGESTION_MODULES = {
    "detailed": detailed,
    "simple": simple,
}


def get_ingestion_module(module_name: str):
    """Get an ingestion module by name."""
    if module_name not in _INGESTION_MODULES:
        raise ValueError(f"Unknown ingestion module: {module_name}")
    return _INGESTION_MODULES[module_name]


def get_available_modules():
    """Get list of available ingestion modules."""
    return list(_INGESTION_MODULES.keys())


def detect_format(header: List[str]) -> str:
    """Pick the ingestion module name for a header row.

    A header with a Valuation column but no Deposit column is the simple
    format; anything else is read as detailed.
    """
    names = {h.strip().lstrip("\ufeff") for h in header}
    if "Valuation" in names and "Deposit" not in names:
        return "simple"
    return "detailed"
