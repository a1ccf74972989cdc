"""
calc_core: PanelForge calculations over the SQLite schema.

- BOM pin allocation per panel section (calculate / apply)
- power budget: rail connection counts and scenario-based PSU demand
- build progress with wiring-status cascade
- MobiFlight device lists, wiring diagram, LVAR reference
- overlay geometry for the panel photo
- full JSON export / import
"""

from .bom import apply_bom, calculate_bom
from .build_progress import build_progress, update_component_status
from .export_payload import export_all, import_all
from .mobiflight import board_devices, export_board
from .power_budget import connection_budget, evaluate_scenario, power_components
from .wiring import wiring_diagram

__all__ = [
    "apply_bom",
    "board_devices",
    "build_progress",
    "calculate_bom",
    "connection_budget",
    "evaluate_scenario",
    "export_all",
    "export_board",
    "import_all",
    "power_components",
    "update_component_status",
    "wiring_diagram",
]
