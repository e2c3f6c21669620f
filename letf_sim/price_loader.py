"""Loading of historical daily price changes.

The input file holds one daily change per line as a decimal fraction
(``0.0123`` for +1.23%). Lines may carry stray characters such as byte order
marks or other non-ASCII noise from spreadsheet exports; anything outside
``[a-zA-Z0-9-+.$%]`` is removed before parsing.
"""

import logging
from pathlib import Path
from typing import List, Union

import numpy as np
import pandas as pd

from .price import Price

logger = logging.getLogger(__name__)

_NOISE_PATTERN = r"[^a-zA-Z0-9\-+.$%]+"


class PriceFileError(ValueError):
    """Raised when the price file cannot be turned into price options."""


def load_daily_changes(path: Union[str, Path]) -> List[Price]:
    """Read a daily change file into price options.

    Args:
        path: File with one decimal daily change per line.

    Returns:
        Prices in file order, as percentages.

    Raises:
        FileNotFoundError: If the file does not exist.
        PriceFileError: If a line cannot be parsed as a finite number, or the
            file holds no values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Price file not found: {path}")

    with open(path, "r", encoding="utf-8", errors="replace") as f:
        lines = pd.Series(f.read().splitlines(), dtype=object)

    cleaned = lines.str.replace(_NOISE_PATTERN, "", regex=True)
    cleaned = cleaned[cleaned != ""]
    values = pd.to_numeric(cleaned, errors="coerce").astype(float)

    invalid = ~np.isfinite(values)
    if invalid.any():
        index = invalid.idxmax()
        raise PriceFileError(f"{path}:{index + 1}: cannot parse '{lines[index]}'")
    if values.empty:
        raise PriceFileError(f"{path}: no price changes found")

    prices = [Price(float(value) * 100.0) for value in values]
    logger.info("Loaded %d daily price changes from %s", len(prices), path)
    return prices
