"""
Data records: movies, user profiles, watchlist and rating entries.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional, Set

from errors import InvalidPreferenceError, InvalidRatingError
from utils import PREFERENCE_DECADES, PREFERENCE_GENRES, PREFERENCE_MOODS, release_year


@dataclass(frozen=True)
class Movie:
    """Flat movie record. Enriched records carry the detail-endpoint fields."""

    id: int
    title: str
    overview: str = ""
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: str = ""
    vote_average: float = 0.0
    genres: List[str] = field(default_factory=list)
    genre_ids: List[int] = field(default_factory=list)
    runtime: Optional[int] = None
    director: Optional[str] = None
    cast: List[str] = field(default_factory=list)
    trailer_url: Optional[str] = None
    certification: Optional[str] = None
    similar_movies: List[int] = field(default_factory=list)
    # Raw similar list items, kept so a failed detail fetch can fall back to them
    similar_items: List[dict] = field(default_factory=list, repr=False)
    recommended_movies: List[int] = field(default_factory=list)
    popularity: float = 0.0

    @property
    def year(self):
        return release_year(self.release_date)

    @property
    def is_enriched(self):
        return bool(self.director or self.cast or self.runtime)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class Preferences:
    genres: Set[str] = field(default_factory=set)
    decades: Set[str] = field(default_factory=set)
    moods: Set[str] = field(default_factory=set)

    def validate(self):
        """Raise InvalidPreferenceError for any value outside the fixed options."""
        for label, values, allowed in (
            ("genre", self.genres, PREFERENCE_GENRES),
            ("decade", self.decades, PREFERENCE_DECADES),
            ("mood", self.moods, PREFERENCE_MOODS),
        ):
            unknown = sorted(set(values) - set(allowed))
            if unknown:
                raise InvalidPreferenceError(f"Unknown {label} preference: {', '.join(unknown)}")
        return self

    def is_empty(self):
        return not (self.genres or self.decades or self.moods)

    def to_dict(self):
        # Lists keep the stored document JSON friendly
        return {
            "genres": sorted(self.genres),
            "decades": sorted(self.decades),
            "moods": sorted(self.moods)
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            genres=set(data.get("genres") or []),
            decades=set(data.get("decades") or []),
            moods=set(data.get("moods") or [])
        )


@dataclass
class WatchlistEntry:
    user_id: str
    movie_id: int
    movie: dict
    added_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class RatingEntry:
    user_id: str
    movie_id: int
    rating: int
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
    review: str = ""

    def __post_init__(self):
        self.rating = validate_rating(self.rating)


@dataclass
class UserProfile:
    uid: str
    email: str
    display_name: str = ""
    preferences: Preferences = field(default_factory=Preferences)
    watchlist: List[WatchlistEntry] = field(default_factory=list)
    ratings: List[RatingEntry] = field(default_factory=list)
    friends: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


@dataclass
class FeedActivity:
    """One item of the social feed: a friend's rating or watchlist add."""

    user_id: str
    display_name: str
    type: str
    movie_id: int
    movie_title: str
    poster_path: Optional[str]
    timestamp: datetime
    rating: Optional[int] = None
    comment: str = ""


def validate_rating(value):
    """Return value as an int in 1..5, else raise InvalidRatingError."""
    if isinstance(value, bool):
        raise InvalidRatingError("Rating must be a whole number from 1 to 5")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or not 1 <= value <= 5:
        raise InvalidRatingError("Rating must be a whole number from 1 to 5")
    return value
