"""Internal constants shared across the library."""

FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
USER_AGENT = "busbeacon/1 aiohttp"
DEFAULT_DATABASE = "(default)"
DEFAULT_COLLECTION = "buses"

#: Bearer token the Firestore emulator accepts as an admin credential.
EMULATOR_TOKEN = "owner"

#: Document field names written by position updates.
LATITUDE_FIELD = "lat"
LONGITUDE_FIELD = "lon"
UPDATED_AT_FIELD = "updatedAt"
NAME_FIELD = "name"

UNKNOWN_BUS_NAME = "Unknown Bus"

#: Fallback manual location (San Francisco).
DEFAULT_LATITUDE = 37.7749
DEFAULT_LONGITUDE = -122.4194

#: Largest page size the Firestore list endpoint honours.
LIST_PAGE_SIZE = 300

GPSD_HOST = "127.0.0.1"
GPSD_PORT = 2947
GPSD_WATCH_COMMAND = b'?WATCH={"enable":true,"json":true};\n'
