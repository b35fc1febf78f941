"""
Weighted movie scoring against a user's preference profile.

Scores are a fixed weighted sum; nothing is learned from feedback.
"""

import logging
from collections import Counter
from datetime import datetime

from models import Preferences, UserProfile
from utils import RECOMMENDATION_WEIGHTS, release_year

logger = logging.getLogger(__name__)

DIRECTOR_BONUS = 10
ACTOR_BONUS = 2
MAX_ACTOR_BONUS = 10


def _field(movie, name, default=None):
    """Read a field from a Movie object or a plain dict."""
    if isinstance(movie, dict):
        return movie.get(name, default)
    return getattr(movie, name, default)


def _year(movie):
    year = _field(movie, "year")
    if year:
        return int(year)
    return release_year(_field(movie, "release_date"))


def _movie_id(movie):
    return str(_field(movie, "id"))


def _favorite_genres(profile):
    if isinstance(profile, UserProfile):
        return sorted(profile.preferences.genres)
    if isinstance(profile, Preferences):
        return sorted(profile.genres)
    if isinstance(profile, dict):
        return list(profile.get("favorite_genres") or profile.get("genres") or [])
    return []


def build_user_preference_profile(profile, watched, watchlist):
    """
    Summarize explicit preferences and watch history into a scoring profile.

    Args:
        profile: UserProfile, Preferences or dict with explicit favorite genres
        watched: Movies (objects or dicts) the user has seen; an optional
            "user_rating" field carries their 1-5 rating
        watchlist: Movies the user saved for later

    Returns:
        Dictionary with favorite genres, per-genre/actor/director/decade
        counts, rating averages, watchlist genre counts and top lists
    """
    user_profile = {
        "favorite_genres": _favorite_genres(profile),
        "genre_preferences": Counter(),
        "actor_preferences": Counter(),
        "director_preferences": Counter(),
        "decade_preferences": Counter(),
        "average_rating": 0.0,
        "rating_variance": 0.0,
        "rated_genres": {},
        "watchlist_genres": Counter(),
        "top_genres": [],
        "top_actors": [],
        "top_directors": []
    }

    ratings = []
    for movie in watched or []:
        genres = _field(movie, "genres") or []
        user_rating = _field(movie, "user_rating")
        if user_rating:
            ratings.append(user_rating)
            for genre in genres:
                entry = user_profile["rated_genres"].setdefault(genre, {"count": 0, "total_rating": 0})
                entry["count"] += 1
                entry["total_rating"] += user_rating

        user_profile["genre_preferences"].update(genres)
        user_profile["actor_preferences"].update(_field(movie, "cast") or [])
        director = _field(movie, "director")
        if director:
            user_profile["director_preferences"][director] += 1
        decade = ((_year(movie) or 2000) // 10) * 10
        user_profile["decade_preferences"][decade] += 1

    if ratings:
        average = sum(ratings) / len(ratings)
        user_profile["average_rating"] = average
        if len(ratings) > 1:
            user_profile["rating_variance"] = sum((r - average) ** 2 for r in ratings) / len(ratings)

    # most_common keeps first-seen order for ties
    user_profile["top_genres"] = [g for g, _ in user_profile["genre_preferences"].most_common(5)]
    user_profile["top_actors"] = [a for a, _ in user_profile["actor_preferences"].most_common(10)]
    user_profile["top_directors"] = [d for d, _ in user_profile["director_preferences"].most_common(5)]

    for movie in watchlist or []:
        user_profile["watchlist_genres"].update(_field(movie, "genres") or [])

    return user_profile


def calculate_genre_score(movie, user_profile):
    """Genre match in [0, 1]: explicit, watched, well rated and watchlisted genres."""
    genres = _field(movie, "genres") or []
    if not genres:
        return 0.0

    preferences = user_profile.get("genre_preferences") or {}
    max_count = max(preferences.values()) if preferences else 0
    score = 0.0
    for genre in genres:
        if genre in user_profile.get("favorite_genres", []):
            score += 0.3
        if preferences.get(genre):
            score += (preferences[genre] / max_count) * 0.3
        rated = user_profile.get("rated_genres", {}).get(genre)
        if rated:
            score += (rated["total_rating"] / rated["count"] / 5) * 0.2
        if user_profile.get("watchlist_genres", {}).get(genre):
            score += 0.2
    return min(score, 1.0)


def calculate_recency_score(movie, current_year=None):
    year = _year(movie)
    if not year:
        return 0.5
    age = (current_year or datetime.now().year) - year
    if age <= 2:
        return 1.0
    # Linear decay over twenty years
    return max(0.0, 1 - age / 20)


def calculate_popularity_score(movie):
    rating = _field(movie, "vote_average") or _field(movie, "rating")
    if not rating:
        return 0.5
    return rating / 10


def calculate_year_score(movie, user_profile, filters):
    year = _year(movie)
    if not year:
        return 0.5

    year_range = filters.get("year_range")
    if year_range and len(year_range) == 2:
        return 1.0 if year_range[0] <= year <= year_range[1] else 0.2

    decades = user_profile.get("decade_preferences") or {}
    decade = (year // 10) * 10
    if decades.get(decade):
        return decades[decade] / max(decades.values()) * 0.8 + 0.2
    return 0.5


def calculate_people_bonus(movie, user_profile):
    bonus = 0
    director = _field(movie, "director")
    if director and director in user_profile.get("top_directors", []):
        bonus += DIRECTOR_BONUS

    top_actors = user_profile.get("top_actors", [])
    matching = [actor for actor in _field(movie, "cast") or [] if actor in top_actors]
    bonus += min(len(matching) * ACTOR_BONUS, MAX_ACTOR_BONUS)
    return bonus


def apply_filter_adjustments(score, movie, filters):
    """Reward movies that satisfy active genre/rating filters and penalize misses."""
    genre_filter = filters.get("genres") or []
    if genre_filter:
        if any(genre in genre_filter for genre in _field(movie, "genres") or []):
            score += 20
        else:
            score -= 30

    min_rating = filters.get("min_rating")
    rating = _field(movie, "vote_average") or _field(movie, "rating")
    if min_rating and rating:
        score += 10 if rating >= min_rating else -20
    return score


def compute_score(movie, user_profile, filters=None, current_year=None):
    filters = filters or {}
    w = RECOMMENDATION_WEIGHTS
    score = w["base"]
    score += calculate_genre_score(movie, user_profile) * w["genre"]
    score += calculate_recency_score(movie, current_year) * w["recency"]
    score += calculate_popularity_score(movie) * w["popularity"]
    score += calculate_year_score(movie, user_profile, filters) * w["year"]
    score += calculate_people_bonus(movie, user_profile)
    return apply_filter_adjustments(score, movie, filters)


def score_movies(movies, user_profile, filters=None, current_year=None):
    """
    Score every candidate.

    Returns:
        List of (movie, score) tuples in input order
    """
    return [(m, compute_score(m, user_profile, filters, current_year)) for m in movies]


def rank_recommendations(movies, user_profile, filters=None, exclude_ids=None, current_year=None):
    """
    Drop excluded (watchlist / watched) ids and sort the rest by score.

    Args:
        movies: Candidate movies
        user_profile: Output of build_user_preference_profile
        filters: Optional dict with genres, min_rating and year_range
        exclude_ids: Ids to leave out; compared as strings
        current_year: Overrides the clock for recency scoring

    Returns:
        List of (movie, score) tuples, best first
    """
    excluded = {str(i) for i in exclude_ids or []}
    candidates = [m for m in movies if _movie_id(m) not in excluded]
    scored = score_movies(candidates, user_profile, filters, current_year)
    scored.sort(key=lambda pair: pair[1], reverse=True)
    logger.debug("Ranked %d of %d candidates", len(scored), len(movies))
    return scored


def rank_with_history(movies, preferences, ratings, watchlist, filters=None):
    """
    Re-rank candidates with a user's ratings and watchlist.

    Args:
        movies: Candidate movies
        preferences: Preferences, UserProfile or dict with favourite genres
        ratings: RatingEntry records; rated movies count as watched
        watchlist: WatchlistEntry records; their movie snapshots carry genres

    Returns:
        Candidates best first, without anything already rated or saved
    """
    saved = [entry.movie for entry in watchlist or []]
    snapshots = {str(m.get("id")): m for m in saved}
    watched = [
        dict(snapshots.get(str(r.movie_id), {"id": r.movie_id}), user_rating=r.rating)
        for r in ratings or []
    ]
    profile = build_user_preference_profile(preferences, watched, saved)
    exclude = [entry.movie_id for entry in watchlist or []] + [r.movie_id for r in ratings or []]
    return [movie for movie, _ in rank_recommendations(movies, profile, filters, exclude)]
