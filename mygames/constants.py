"""Fixed vocabularies shared by the API, the importer and the core."""

PLATFORMS = [
    "PC", "Steam Deck", "PS5", "PS4", "PS3", "PS2", "PS1", "PSP", "PS Vita",
    "Xbox Series", "Xbox One", "Xbox 360", "Xbox",
    "Switch", "Switch 2", "Wii U", "Wii", "GameCube", "N64", "SNES", "NES",
    "3DS", "DS", "GBA", "GBC", "Game Boy",
    "Dreamcast", "Mega Drive", "Saturn", "Master System",
    "Neo Geo", "Android", "iOS", "Mac", "Linux",
]

PENDING_STATUS = "Pendiente"
PLAYING_STATUS = "Jugando"
COMPLETED_STATUS = "Completado"
PERFECT_STATUS = "100%"

STATUSES = [
    PENDING_STATUS,
    PLAYING_STATUS,
    COMPLETED_STATUS,
    PERFECT_STATUS,
    "Empezado",
    "Deseado",
    "Abandonado",
]

DIGITAL_FORMAT = "Digital"
PHYSICAL_FORMAT = "Physical"
FORMATS = [DIGITAL_FORMAT, PHYSICAL_FORMAT]

# Sentinel for "no format constraint" in the collection filters
ALL_FORMATS = "all"

DEFAULT_PLATFORM = "PC"
DEFAULT_STATUS = PENDING_STATUS
DEFAULT_FORMAT = DIGITAL_FORMAT

# Length of the games.title column
TITLE_MAX_LENGTH = 255

RATING_MIN = 0.0
RATING_MAX = 10.0
RATING_STEP = 0.5
