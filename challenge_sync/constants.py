MAX_CHALLENGES = 3
MAX_DAY = 100
MAX_TITLE_LENGTH = 100

CHALLENGES_TABLE = "challenges"
PREFERENCES_TABLE = "preferences"

FIRESTORE_API = "https://firestore.googleapis.com/v1"
FIRESTORE_USERS_COLLECTION = "users"
FIRESTORE_CHALLENGES_COLLECTION = "challenges"
FIRESTORE_PAGE_SIZE = 300

ACCENT_COLORS = [
    ("coral_red", "#F26D6D"),
    ("sunset_orange", "#F4A261"),
    ("fresh_green", "#6BCF94"),
    ("ocean_teal", "#4ECDC4"),
    ("sky_blue", "#5C9FFF"),
    ("soft_lavender", "#C7B7FF"),
    ("royal_purple", "#9B6BFF"),
    ("magenta", "#FF6BB5"),
    ("dark_brown", "#76574A"),
    ("deep_navy", "#1F2A44"),
]
DEFAULT_ACCENT_COLOR = ACCENT_COLORS[0][1]
