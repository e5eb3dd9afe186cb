"""Two-ledger reconciliation of ERP exports against vendor statements."""

from .config import ReconConfig, load_config
from .matching.engine import ReconciliationEngine

__version__ = "0.1.0"

__all__ = ["ReconConfig", "load_config", "ReconciliationEngine", "__version__"]
