"""LocalPro - local services marketplace.

Domain library: models, storage backends and the marketplace actions used
by the HTTP API in ``backend/app``.
"""

__version__ = "0.1.0"

from localpro.config import MarketplaceConfig
from localpro.results import ActionResult, ErrorCode

__all__ = ["ActionResult", "ErrorCode", "MarketplaceConfig", "__version__"]
