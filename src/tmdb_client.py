"""
Thin client for The Movie Database (TMDB) REST API.

Builds discover query parameters from a filter bag, issues the request and
normalizes provider objects into flat Movie records. Failures are logged and
re-raised as TMDBError; callers decide how to degrade.
"""

import logging

import requests

from errors import TMDBConfigError, TMDBError
from models import Movie
from utils import GENRE_NAMES, MOOD_PARAMS, TMDB_BASE_URL, genre_names_to_ids, get_secret

logger = logging.getLogger(__name__)

DETAIL_APPENDS = "credits,similar,recommendations,videos,release_dates"
MAX_CAST = 10
MAX_RELATED = 10

# Filter-bag keys passed to /discover/movie unchanged
_PASSTHROUGH_PARAMS = {
    "vote_average_gte": "vote_average.gte",
    "vote_average_lte": "vote_average.lte",
    "vote_count_gte": "vote_count.gte",
    "vote_count_lte": "vote_count.lte",
    "sort_by": "sort_by",
    "with_people": "with_people",
    "with_cast": "with_cast",
    "with_crew": "with_crew",
    "with_keywords": "with_keywords",
    "with_companies": "with_companies",
    "with_runtime_lte": "with_runtime.lte",
    "with_runtime_gte": "with_runtime.gte",
}


def _join(values):
    if isinstance(values, (list, tuple, set)):
        return ",".join(str(v) for v in values)
    return str(values)


def build_discover_params(filters, page=1):
    """
    Translate a filter bag into /discover/movie query parameters.

    Args:
        filters: Dict with any of genres, genres_any, exclude_genres, release_year,
            release_year_gte, release_year_lte, release_date_lte,
            vote_average_gte, vote_count_gte, certification, sort_by and
            people/keyword/company filters
        page: Result page number

    Returns:
        Dict of query parameters
    """
    filters = filters or {}
    params = {"page": filters.get("page", page)}

    genres = genre_names_to_ids(filters.get("genres"))
    any_genres = genre_names_to_ids(filters.get("genres_any"))
    if genres:
        params["with_genres"] = _join(genres)
    elif any_genres:
        # TMDB reads "|" as OR and "," as AND
        params["with_genres"] = "|".join(str(g) for g in any_genres)

    excluded = genre_names_to_ids(filters.get("exclude_genres"))
    if excluded:
        params["without_genres"] = _join(excluded)

    if filters.get("release_year"):
        params["primary_release_year"] = filters["release_year"]
    else:
        if filters.get("release_year_gte"):
            params["primary_release_date.gte"] = f"{filters['release_year_gte']}-01-01"
        if filters.get("release_year_lte"):
            params["primary_release_date.lte"] = f"{filters['release_year_lte']}-12-31"

    # An explicit date ceiling (e.g. the classics mood) wins over a decade end
    if filters.get("release_date_lte"):
        params["primary_release_date.lte"] = filters["release_date_lte"]

    if filters.get("certification"):
        params["certification_country"] = "US"
        params["certification"] = filters["certification"].replace(",", "|")

    for key, param in _PASSTHROUGH_PARAMS.items():
        value = filters.get(key)
        if value is not None and value != "":
            params[param] = _join(value)

    return params


def _director(raw):
    crew = (raw.get("credits") or {}).get("crew") or []
    return next((p.get("name") for p in crew if p.get("job") == "Director" and p.get("name")), None)


def _trailer_url(raw):
    videos = (raw.get("videos") or {}).get("results") or []
    for video in videos:
        if video.get("type") == "Trailer" and video.get("site", "YouTube") == "YouTube" and video.get("key"):
            return f"https://www.youtube.com/watch?v={video['key']}"
    return None


def _certification(raw, country="US"):
    blocks = (raw.get("release_dates") or {}).get("results") or []
    for block in blocks:
        if block.get("iso_3166_1") != country:
            continue
        dates = block.get("release_dates") or []
        # Prefer the theatrical (type 3) rating, then any non-empty one
        for rd in sorted(dates, key=lambda d: d.get("type") != 3):
            if rd.get("certification"):
                return rd["certification"]
    return None


def transform_movie(raw):
    """
    Normalize a TMDB list item or detail object into a Movie.

    Missing credits, videos, related lists or certification default to
    empty values instead of failing.
    """
    if raw.get("genres"):
        genres = [g["name"] if isinstance(g, dict) else g for g in raw["genres"]]
        genre_ids = [g["id"] for g in raw["genres"] if isinstance(g, dict) and "id" in g]
    else:
        genre_ids = list(raw.get("genre_ids") or [])
        genres = [GENRE_NAMES[g] for g in genre_ids if g in GENRE_NAMES]

    cast = (raw.get("credits") or {}).get("cast") or []
    similar = (raw.get("similar") or {}).get("results") or []
    recommended = (raw.get("recommendations") or {}).get("results") or []

    return Movie(
        id=raw["id"],
        title=raw.get("title") or raw.get("name") or "",
        overview=raw.get("overview") or "",
        poster_path=raw.get("poster_path"),
        backdrop_path=raw.get("backdrop_path"),
        release_date=raw.get("release_date") or "",
        vote_average=float(raw.get("vote_average") or 0.0),
        genres=genres,
        genre_ids=genre_ids,
        runtime=raw.get("runtime") or None,
        director=_director(raw),
        cast=[p.get("name") for p in cast[:MAX_CAST] if p.get("name")],
        trailer_url=_trailer_url(raw),
        certification=_certification(raw),
        similar_movies=[m["id"] for m in similar[:MAX_RELATED]],
        similar_items=[dict(m) for m in similar[:MAX_RELATED]],
        recommended_movies=[m["id"] for m in recommended[:MAX_RELATED]],
        popularity=float(raw.get("popularity") or 0.0),
    )


class TMDBClient:
    """Wrapper around the TMDB v3 endpoints used by the app."""

    BASE_URL = TMDB_BASE_URL

    def __init__(self, api_key=None, read_token=None, session=None, timeout=10):
        self.api_key = api_key or get_secret("TMDB_API_KEY")
        self.read_token = read_token or get_secret("TMDB_READ_TOKEN")
        if not self.api_key and not self.read_token:
            raise TMDBConfigError("No TMDB API key or read token configured")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, path, **params):
        headers = {"accept": "application/json"}
        if self.read_token:
            headers["Authorization"] = f"Bearer {self.read_token}"
        else:
            params["api_key"] = self.api_key
        params.setdefault("language", "en-US")

        url = f"{self.BASE_URL}{path}"
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("TMDB request to %s failed: %s", path, e)
            raise TMDBError(f"TMDB request failed: {e}", endpoint=path) from e

        if not response.ok:
            logger.error("TMDB %s returned %s", path, response.status_code)
            raise TMDBError(
                f"TMDB request failed: {response.status_code}",
                status_code=response.status_code,
                endpoint=path,
            )
        return response.json()

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------
    def discover_movies(self, filters=None, page=1):
        """Run /discover/movie; returns the raw page dict with pagination fields."""
        return self._get("/discover/movie", **build_discover_params(filters, page))

    def search_movies(self, query, page=1):
        return self._get("/search/movie", query=query, page=page, include_adult="false")

    def get_popular_movies(self, page=1):
        return self._get("/movie/popular", page=page)

    def get_top_rated_movies(self, page=1):
        return self._get("/movie/top_rated", page=page)

    def get_now_playing_movies(self, page=1):
        return self._get("/movie/now_playing", page=page)

    def get_trending_movies(self, time_window="week"):
        return self._get(f"/trending/movie/{time_window}")

    def get_genres(self):
        return self._get("/genre/movie/list").get("genres", [])

    def get_movie_details(self, movie_id):
        """Detail object with credits, similar, recommendations, videos and certifications."""
        return self._get(f"/movie/{movie_id}", append_to_response=DETAIL_APPENDS)

    # ------------------------------------------------------------------
    # Discover shortcuts for the discovery page
    # ------------------------------------------------------------------
    def get_mood_based_movies(self, mood, page=1):
        filters = dict(MOOD_PARAMS.get(mood, {}))
        filters.setdefault("sort_by", "popularity.desc")
        return self.discover_movies(filters, page=page)

    def get_recommended_movies(self, genre_ids, min_rating=7.0, page=1):
        filters = {
            "genres": list(genre_ids),
            "vote_average_gte": min_rating,
            "vote_count_gte": 100,
            "sort_by": "popularity.desc",
        }
        return self.discover_movies(filters, page=page)
