"""Cart-wide constants.

Centralizes the storage namespace and quantity bounds so the store,
the snapshot decoder and the settings loader agree on them.
"""

# ============== STORAGE ==============
APP_NAMESPACE = "@GoMarketplace"
CART_STORAGE_KEY = f"{APP_NAMESPACE}:products"

# ============== QUANTITY ==============
NEW_ITEM_QUANTITY = 1
MIN_QUANTITY = 1  # items below this leave the cart

# ============== LOGGING ==============
DEFAULT_LOG_LEVEL = "INFO"
