"""Pool ledger package.

Public API:
- PoolLedger: share/asset accounting for a pooled base asset with reward injection.
- ShareToken, AssetVault, ValidatorRegistry: the ledger's collaborators.
"""

from .ledger import PoolLedger  # re-export
from .token import ShareToken
from .assets import AssetVault
from .registry import ValidatorRegistry

__all__ = ["PoolLedger", "ShareToken", "AssetVault", "ValidatorRegistry"]
