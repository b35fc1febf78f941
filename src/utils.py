"""
Utility functions and constants for the movie discovery app.
"""

import os
from datetime import datetime

import streamlit as st
from dotenv import load_dotenv
from streamlit.errors import StreamlitAPIException

load_dotenv()

# TMDB endpoints
TMDB_BASE_URL = "https://api.themoviedb.org/3"
IMAGE_BASE_URL = "https://image.tmdb.org/t/p/"

IMAGE_SIZES = {
    "small": "w200",
    "medium": "w500",
    "large": "w780",
    "original": "original"
}

GENRE_IDS = {
    "Action": 28,
    "Adventure": 12,
    "Animation": 16,
    "Comedy": 35,
    "Crime": 80,
    "Documentary": 99,
    "Drama": 18,
    "Family": 10751,
    "Fantasy": 14,
    "History": 36,
    "Horror": 27,
    "Music": 10402,
    "Mystery": 9648,
    "Romance": 10749,
    "Science Fiction": 878,
    "TV Movie": 10770,
    "Thriller": 53,
    "War": 10752,
    "Western": 37
}
GENRE_NAMES = {genre_id: name for name, genre_id in GENRE_IDS.items()}
GENRES = list(GENRE_IDS)

# Inclusive release-year bounds; None leaves that side open
DECADE_YEAR_RANGES = {
    "2020s": (2020, None),
    "2010s": (2010, 2019),
    "2000s": (2000, 2009),
    "1990s": (1990, 1999),
    "1980s": (1980, 1989),
    "1970s": (1970, 1979),
    "1960s": (1960, 1969),
    "Older": (None, 1979)
}
DECADES = ["2020s", "2010s", "2000s", "1990s", "1980s", "Older"]

# Local movie service: mood -> genres a movie must overlap with
MOOD_GENRE_MAP = {
    "Feel-Good": ["Comedy", "Family", "Adventure"],
    "Dark & Gritty": ["Crime", "Thriller", "Drama"],
    "Thought-Provoking": ["Drama", "Science Fiction", "Mystery"],
    "Action-Packed": ["Action", "Adventure", "Science Fiction"],
    "Emotional": ["Drama", "Romance"],
    "Inspirational": ["Drama", "Biography", "Sport"]
}
MOODS = list(MOOD_GENRE_MAP)

# Recommendation layer: mood id -> discover filter bundle
MOOD_PARAMS = {
    "date-night": {
        "genres": ["Romance", "Drama", "Comedy"],
        "certification": "PG-13,R",
        "exclude_genres": ["Horror", "War", "Documentary"],
        "vote_average_gte": 6.5
    },
    "feel-good": {
        "genres": ["Comedy", "Family", "Adventure"],
        "certification": "G,PG,PG-13",
        "exclude_genres": ["Horror", "War", "Thriller"],
        "vote_average_gte": 7.0
    },
    "adrenaline": {
        "genres": ["Action", "Thriller", "Adventure"],
        "exclude_genres": ["Documentary", "Family"],
        "vote_average_gte": 6.5
    },
    "thought-provoking": {
        "genres": ["Drama", "Mystery", "Science Fiction"],
        "exclude_genres": ["Family", "Comedy"],
        "vote_average_gte": 7.0
    },
    "spooky": {
        "genres": ["Horror", "Thriller", "Mystery"],
        "exclude_genres": ["Family", "Comedy", "Animation"],
        "vote_average_gte": 6.0
    },
    "adventure": {
        "genres": ["Adventure", "Action", "Fantasy"],
        "exclude_genres": ["Horror", "War"],
        "vote_average_gte": 6.5
    },
    "award-winners": {
        "sort_by": "vote_average.desc",
        "certification": "PG-13,R",
        "vote_average_gte": 8.0,
        "vote_count_gte": 1000
    },
    "sci-fi": {
        "genres": ["Science Fiction", "Fantasy"],
        "exclude_genres": ["Documentary", "Western"],
        "vote_average_gte": 6.5
    },
    "family": {
        "genres": ["Family", "Animation", "Adventure"],
        "certification": "G,PG",
        "exclude_genres": ["Horror", "Thriller", "War"],
        "vote_average_gte": 6.5
    },
    "classics": {
        "release_date_lte": "2000-12-31",
        "vote_average_gte": 7.5,
        "vote_count_gte": 500
    }
}

MOOD_LABELS = {
    "date-night": "Date Night",
    "feel-good": "Feel-Good",
    "adrenaline": "Adrenaline Rush",
    "thought-provoking": "Mind-Bending",
    "spooky": "Spooky",
    "adventure": "Adventure",
    "award-winners": "Award Winners",
    "sci-fi": "Sci-Fi",
    "family": "Family Friendly",
    "classics": "Classics"
}

# Options offered on the preferences screen
PREFERENCE_GENRES = [
    "Action", "Adventure", "Animation", "Comedy", "Crime",
    "Documentary", "Drama", "Family", "Fantasy", "Horror",
    "Music", "Mystery", "Romance", "Science Fiction", "Thriller",
    "War", "Western"
]
PREFERENCE_DECADES = ["2020s", "2010s", "2000s", "1990s", "1980s", "1970s", "1960s", "Older"]
PREFERENCE_MOODS = [
    "Feel-Good", "Dark & Gritty", "Thought-Provoking", "Action-Packed",
    "Emotional", "Inspirational", "Scary", "Funny", "Relaxing", "Intense"
]

# Weighted ranking: each factor score is in [0, 1] and multiplied by its weight
RECOMMENDATION_WEIGHTS = {
    "base": 50,
    "genre": 15,
    "recency": 5,
    "popularity": 10,
    "year": 5
}

RATING_FILTERS = ["9+", "8+", "7+", "6+", "Any"]

SORT_OPTIONS = {
    "popularity.desc": "Popularity",
    "vote_average.desc": "Rating",
    "release_date.desc": "Newest First",
    "revenue.desc": "Highest Grossing",
    "original_title.asc": "Title A-Z"
}

# Toggleable pills on the filter panel; new-this-year gets its year at call time
QUICK_FILTERS = {
    "hidden-gems": {"vote_average_gte": 7.5, "vote_count_gte": 100, "vote_count_lte": 1000},
    "new-this-year": {},
    "critically-acclaimed": {"vote_average_gte": 8.0, "vote_count_gte": 1000},
    "short-watch": {"with_runtime_lte": 100}
}

QUICK_FILTER_LABELS = {
    "hidden-gems": "Hidden Gems",
    "new-this-year": "New This Year",
    "critically-acclaimed": "Critically Acclaimed",
    "short-watch": "Short Watch"
}


def get_secret(name, default=None):
    """
    Read a setting from Streamlit secrets, falling back to the environment.

    Args:
        name: Secret / environment variable name
        default: Value returned when neither source defines it

    Returns:
        The configured value or default
    """
    try:
        if name in st.secrets:
            return st.secrets[name]
    except (FileNotFoundError, KeyError, StreamlitAPIException):
        # No secrets.toml; environment only
        pass
    return os.getenv(name, default)


def get_image_url(path, size="original"):
    """Build a TMDB CDN url for an image path fragment."""
    if not path:
        return None
    bucket = IMAGE_SIZES.get(size, size)
    return f"{IMAGE_BASE_URL}{bucket}{path}"


def release_year(date_str):
    """Year of a 'YYYY-MM-DD' release date, or None."""
    if not date_str or len(date_str) < 4:
        return None
    try:
        return int(date_str[:4])
    except ValueError:
        return None


def decade_year_range(decade):
    """Inclusive (start, end) bounds for a decade tag; (None, None) if unknown."""
    return DECADE_YEAR_RANGES.get(decade, (None, None))


def year_in_decade(year, decade):
    if year is None:
        return False
    if decade not in DECADE_YEAR_RANGES:
        return True
    start, end = DECADE_YEAR_RANGES[decade]
    if start is not None and year < start:
        return False
    if end is not None and year > end:
        return False
    return True


def genre_names_to_ids(names):
    """Map genre names (case-insensitive) to TMDB ids, dropping unknown names."""
    lookup = {name.lower(): genre_id for name, genre_id in GENRE_IDS.items()}
    ids = []
    for name in names or []:
        if isinstance(name, int):
            ids.append(name)
            continue
        genre_id = lookup.get(str(name).lower())
        if genre_id is not None:
            ids.append(genre_id)
    return ids


def parse_rating_filter(value):
    """'8+' -> 8.0; 'Any' or empty -> None."""
    if not value or value == "Any":
        return None
    return float(value.rstrip("+"))


def format_runtime(minutes):
    if not minutes:
        return "Unknown"
    return f"{minutes // 60}h {minutes % 60}m"


def relative_time(timestamp, now=None):
    """Human readable age of a timestamp, e.g. '2 hours ago' or 'Yesterday'."""
    now = now or datetime.utcnow()
    seconds = int((now - timestamp).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return "Yesterday" if days == 1 else f"{days} days ago"
    if hours > 0:
        return f"{hours} {'hour' if hours == 1 else 'hours'} ago"
    if minutes > 0:
        return f"{minutes} {'minute' if minutes == 1 else 'minutes'} ago"
    return "Just now"


def quick_filter_params(name, today=None):
    """Filter-bag entries for a quick filter id."""
    params = dict(QUICK_FILTERS[name])
    if name == "new-this-year":
        params["release_year"] = (today or datetime.now()).year
    return params
