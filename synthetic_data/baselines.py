"""
Synthetic Data - Example baselines.

Fixed reference values used when no live source can deliver a
price. Changing a value here changes every example record.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Baseline:
    """Reference price for one commodity."""
    price: float
    unit: str
    change: float
    change_percent: float


EXAMPLE_BASELINES: Dict[str, Baseline] = {
    "Gold": Baseline(2650.50, "USD/oz", 12.30, 0.47),
    "Silver": Baseline(24.85, "USD/oz", -0.15, -0.60),
    "Platinum": Baseline(985.20, "USD/oz", 5.80, 0.59),
    "Copper": Baseline(4.25, "USD/lb", 0.08, 1.92),
    "Lithium": Baseline(18500, "USD/metric ton", -250, -1.33),
    "Nickel": Baseline(16800, "USD/metric ton", 120, 0.72),
    "Cobalt": Baseline(32500, "USD/metric ton", -450, -1.37),
    "Graphite": Baseline(1250, "USD/metric ton", 25, 2.04),
    "Rare Earths": Baseline(85000, "USD/metric ton", 1200, 1.43),
    "Electricity": Baseline(85.50, "USD/MWh", 2.30, 2.76),
    "Gas": Baseline(3.25, "USD/MMBtu", -0.12, -3.57),
}
