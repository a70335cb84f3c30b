"""Game constants."""

GRID_SIZE = 15
FOOD_COUNT = 3
INITIAL_SNAKE = ((5, 5),)
INITIAL_DIRECTION = "right"

# Rejected draws before placement falls back to enumerating free cells
MAX_PLACEMENT_ATTEMPTS = 500

DIRECTIONS = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}
OPPOSITES = {"up": "down", "down": "up", "left": "right", "right": "left"}

# name -> (tick interval in ms, obstacle count)
DIFFICULTY_LEVELS = {
    "Easy": (300, 3),
    "Medium": (200, 5),
    "Hard": (150, 8),
}
DEFAULT_DIFFICULTY = "Easy"

FOOD_POINTS = {
    "regular": 1,
    "bonus": 3,
    "super": 5,
}

FALLBACK_TAG = "Power-up!"
FALLBACK_QUOTES = [
    ("Extra speed boost!", "System"),
    ("Double points for 10 seconds!", "System"),
    ("Immunity to obstacles!", "System"),
]
QUOTES_URL = "https://api.quotable.io/quotes/random?limit=25"
