"""
Synthetic Data Package.

Example records and generated history, clearly flagged as
synthetic, for commodities no live source can price.
"""

from synthetic_data.baselines import EXAMPLE_BASELINES, Baseline
from synthetic_data.generator import (
    generate_series,
    get_all_example_records,
    get_example_record,
    is_example_record,
    shift_months,
)


__all__ = [
    "Baseline",
    "EXAMPLE_BASELINES",
    "generate_series",
    "get_example_record",
    "get_all_example_records",
    "is_example_record",
    "shift_months",
]
