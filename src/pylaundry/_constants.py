"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Storage keys (each maps to a JSON-encoded array)
# ------------------------------------------------------------------

ORDERS_KEY = "orders"
INVENTORY_KEY = "inventory"
DRIVERS_KEY = "drivers"
ROUTES_KEY = "routes"

STORAGE_KEYS: tuple[str, ...] = (ORDERS_KEY, INVENTORY_KEY, DRIVERS_KEY, ROUTES_KEY)

# ------------------------------------------------------------------
# Cache lifetimes (seconds)
# ------------------------------------------------------------------

ORDERS_CACHE_TTL: float = 2 * 60
INVENTORY_CACHE_TTL: float = 5 * 60
DRIVERS_CACHE_TTL: float = 2 * 60
DEFAULT_CACHE_TTL: float = 60.0

# ------------------------------------------------------------------
# Services
# ------------------------------------------------------------------

SERVICE_TAGS: tuple[str, ...] = ("wash-fold", "dry-cleaning", "wash-iron", "iron-only")

#: Applied to inventory records persisted before per-service flags existed.
DEFAULT_SERVICE_FLAGS: dict[str, bool] = {
    "wash-fold": True,
    "dry-cleaning": False,
    "wash-iron": False,
    "iron-only": False,
}

# ------------------------------------------------------------------
# Routing
# ------------------------------------------------------------------

MINUTES_PER_STOP = 15
UNKNOWN_ADDRESS = "Address not provided"

# ------------------------------------------------------------------
# Backups
# ------------------------------------------------------------------

BACKUP_VERSION = "1.0.0"
