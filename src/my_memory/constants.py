"""my-memory constants.

Implementation details that do not change between deployments. User-facing
settings live in my_memory.config.
"""

# =============================================================================
# Record defaults
# =============================================================================

DEFAULT_IMPORTANCE = 50
MIN_IMPORTANCE = 0
MAX_IMPORTANCE = 100

# Id prefixes per record kind: <prefix>_<epoch-ms>_<random hex>
ENTITY_ID_PREFIX = "entity"
OBSERVATION_ID_PREFIX = "obs"
RELATION_ID_PREFIX = "rel"

# =============================================================================
# Projections and summaries
# =============================================================================

# Observations embedded in a detailed entity projection
DETAIL_OBSERVATION_LIMIT = 5

# Observations listed in an entity summary
SUMMARY_OBSERVATION_LIMIT = 5

SUMMARY_NOT_FOUND = "Entity not found."

# =============================================================================
# Storage
# =============================================================================

DEFAULT_DATABASE_PATH = "data/my-memory.sqlite"
DEFAULT_BUSY_TIMEOUT_MS = 5000
