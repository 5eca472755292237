"""
Data Maps

Two-column CSV lookup tables bundled with the package and used to enrich
tracks for display: ship type to symbol/description, aircraft category to
symbol/description, airline code to operator/symbol, and aircraft type
designator to full name. Loaded once at import, read-only afterwards.
"""

import csv
import io
import logging
from importlib import resources
from types import MappingProxyType
from typing import Dict, Mapping

logger = logging.getLogger(__name__)

DATA_PACKAGE = "track_fusion.data"


def load(filename: str, package: str = DATA_PACKAGE) -> Mapping[str, str]:
    """
    Load a two-column CSV resource into a read-only mapping

    Rows with fewer than two columns are skipped. A missing or unreadable
    file is logged and yields an empty mapping.

    Args:
        filename: Resource file name
        package: Package holding the resource

    Returns:
        Mapping of first column to second column
    """
    data: Dict[str, str] = {}
    try:
        text = resources.files(package).joinpath(filename).read_text(encoding='utf-8')
    except (OSError, ModuleNotFoundError) as e:
        logger.error(f"Error loading data map file {filename}: {e}")
        return MappingProxyType(data)

    try:
        for row in csv.reader(io.StringIO(text)):
            if len(row) >= 2 and row[0].strip():
                data[row[0].strip()] = row[1].strip()
    except csv.Error as e:
        logger.error(f"Error loading data map file {filename}: {e}")

    logger.debug(f"Loaded {len(data)} entries from {filename}")
    return MappingProxyType(data)


AIRCRAFT_CATEGORY_TO_DESCRIPTION = load("aircraft_cat_to_description.csv")
AIRCRAFT_CATEGORY_TO_SYMBOL = load("aircraft_cat_to_symbol.csv")
AIRCRAFT_AIRLINE_CODE_TO_OPERATOR = load("aircraft_airline_code_to_operator.csv")
AIRCRAFT_AIRLINE_CODE_TO_SYMBOL = load("aircraft_airline_code_to_symbol.csv")
AIRCRAFT_TYPE_SHORT_TO_LONG = load("aircraft_type_short_to_long.csv")
SHIP_TYPE_TO_SYMBOL = load("ship_type_to_symbol.csv")
SHIP_TYPE_TO_DESCRIPTION = load("ship_type_to_description.csv")
