ANONYMOUS_NAME = "Anonymous"
SOMEONE_NAME = "Someone"

# Ceiling on hex cells a single territory query may aggregate
MAX_CELLS = 2000

MOVEMENT_XP = 50
BRISTOL_TYPES = range(1, 8)
WEIGHT_UNITS = [('lbs', 'lbs'), ('kg', 'kg')]

MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT_LENGTH = 1000
MAX_PLACE_NAME_LENGTH = 255

OVERPASS_URL = "https://overpass-api.de/api/interpreter"
OVERPASS_TIMEOUT = 10
DEFAULT_BATHROOM_RADIUS = 2000
MAX_BATHROOM_RADIUS = 10000
BATHROOM_CACHE_TTL = 60 * 60

NOTIFICATION_PAGE_SIZE = 50
DATABASE = 'territories.db'
