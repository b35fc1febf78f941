"""
Recommendation and filtering layer.

Turns preferences, moods and liked movies into discover queries, enriches the
results with detail data through an id-keyed cache, and answers everything
from the local movie list when no TMDB credentials are configured.
"""

import concurrent.futures
import logging
import threading
from collections import OrderedDict

from errors import MovieNotFoundError, TMDBConfigError, TMDBError
from models import Movie, Preferences
from movie_service import LocalMovieService
from tmdb_client import TMDBClient, transform_movie
from utils import (
    DECADE_YEAR_RANGES, MOOD_PARAMS, PREFERENCE_DECADES, PREFERENCE_GENRES,
    get_secret
)

logger = logging.getLogger(__name__)

PERSONALIZED_MIN_RATING = 7
MAX_PERSONALIZED_GENRES = 3
MAX_RELATED = 10


class _PendingFetch:
    """Result slot shared by threads waiting on the same upstream fetch."""

    def __init__(self):
        self.done = threading.Event()
        self.movie = None
        self.error = None

    def wait(self):
        self.done.wait()
        if self.error is not None:
            raise self.error
        return self.movie


class MovieCache:
    """
    Thread-safe id -> enriched Movie map.

    Concurrent get_or_fetch calls for the same id share one upstream fetch.
    Unbounded unless max_entries is given, in which case the least recently
    used entries are evicted.
    """

    def __init__(self, max_entries=None):
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._entries = OrderedDict()
        self._pending = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, movie_id):
        with self._lock:
            return movie_id in self._entries

    def _store(self, movie_id, movie):
        self._entries[movie_id] = movie
        self._entries.move_to_end(movie_id)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def get(self, movie_id):
        with self._lock:
            movie = self._entries.get(movie_id)
            if movie is not None:
                self._entries.move_to_end(movie_id)
            return movie

    def put(self, movie_id, movie):
        with self._lock:
            self._store(movie_id, movie)

    def clear(self):
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def get_or_fetch(self, movie_id, fetch):
        """
        Return the cached movie, calling fetch(movie_id) at most once per id.

        Args:
            movie_id: TMDB movie id
            fetch: Callable returning the enriched Movie

        Returns:
            The cached or freshly fetched Movie

        Raises:
            Whatever fetch raised. Failed fetches are not cached.
        """
        with self._lock:
            if movie_id in self._entries:
                self.hits += 1
                self._entries.move_to_end(movie_id)
                return self._entries[movie_id]
            pending = self._pending.get(movie_id)
            owner = pending is None
            if owner:
                pending = _PendingFetch()
                self._pending[movie_id] = pending
                self.misses += 1
            else:
                self.hits += 1

        if not owner:
            return pending.wait()

        try:
            movie = fetch(movie_id)
            pending.movie = movie
            with self._lock:
                self._store(movie_id, movie)
        except BaseException as e:
            pending.error = e
            raise
        finally:
            # Waiters must always be released, whatever escaped fetch
            with self._lock:
                self._pending.pop(movie_id, None)
            pending.done.set()
        return movie


def resolve_mood_params(mood):
    """Copy of the discover filters for a mood id; empty for none or unknown."""
    if not mood or mood not in MOOD_PARAMS:
        return {}
    params = dict(MOOD_PARAMS[mood])
    for key in ("genres", "exclude_genres"):
        if key in params:
            params[key] = list(params[key])
    return params


def apply_decade(filters, decade):
    """Merge a decade's year bounds into a filter bag (in place) and return it."""
    start, end = DECADE_YEAR_RANGES.get(decade, (None, None))
    if start is not None:
        filters["release_year_gte"] = start
    if end is not None:
        filters["release_year_lte"] = end
    return filters


def _as_preferences(preferences):
    if isinstance(preferences, Preferences):
        return preferences
    return Preferences.from_dict(preferences)


def _ordered(values, options):
    """Sort values by their position in the options list; unknown values last."""
    rank = {value: i for i, value in enumerate(options)}
    return sorted(values, key=lambda v: (rank.get(v, len(options)), v))


def _movie_id(item):
    if isinstance(item, Movie):
        return item.id
    if isinstance(item, dict):
        return item["id"]
    return int(item)


def matches_filters(movie, filters, match_genres=True):
    """Apply a discover filter bag to a local Movie."""
    genres = filters.get("genres")
    if match_genres and genres and not set(genres).intersection(movie.genres):
        return False
    # An explicit genre overrides the mood genres, as on TMDB
    any_genres = filters.get("genres_any")
    if match_genres and any_genres and not genres and not set(any_genres).intersection(movie.genres):
        return False
    excluded = filters.get("exclude_genres")
    if excluded and set(excluded).intersection(movie.genres):
        return False

    year = movie.year
    if filters.get("release_year") and year != int(filters["release_year"]):
        return False
    if filters.get("release_year_gte") and (year is None or year < filters["release_year_gte"]):
        return False
    if filters.get("release_year_lte") and (year is None or year > filters["release_year_lte"]):
        return False
    if filters.get("release_date_lte") and movie.release_date > filters["release_date_lte"]:
        return False
    if filters.get("with_runtime_lte") and movie.runtime and movie.runtime > filters["with_runtime_lte"]:
        return False

    floor = filters.get("vote_average_gte")
    if floor is not None and movie.vote_average < float(floor):
        return False
    return True


def sort_local(movies, sort_by):
    if sort_by == "vote_average.desc":
        return sorted(movies, key=lambda m: m.vote_average, reverse=True)
    if sort_by == "release_date.desc":
        return sorted(movies, key=lambda m: m.release_date, reverse=True)
    if sort_by == "original_title.asc":
        return sorted(movies, key=lambda m: m.title.lower())
    if sort_by == "popularity.desc":
        return sorted(movies, key=lambda m: m.popularity, reverse=True)
    return list(movies)


class RecommendationEngine:
    """
    Recommendation entry points used by the pages.

    With client=None every operation is answered by the local movie service.
    """

    def __init__(self, client=None, local_service=None, cache=None, max_workers=5):
        self.client = client
        self.local_service = local_service or LocalMovieService()
        self.cache = cache if cache is not None else MovieCache()
        self.max_workers = max_workers

    @property
    def uses_local_data(self):
        return self.client is None

    # ------------------------------------------------------------------
    # Detail enrichment
    # ------------------------------------------------------------------
    def _fetch_details(self, movie_id):
        return transform_movie(self.client.get_movie_details(movie_id))

    def _enrich_one(self, candidate):
        try:
            return self.cache.get_or_fetch(candidate.id, self._fetch_details)
        except (TMDBError, KeyError) as e:
            logger.warning("Could not enrich movie %s, using list data: %s", candidate.id, e)
            return candidate

    def enrich_movies(self, candidates):
        """
        Replace list items with enriched records, preserving order.

        Args:
            candidates: Movies or raw TMDB list dicts

        Returns:
            List of Movie; items whose detail fetch failed stay unenriched
        """
        movies = [c if isinstance(c, Movie) else transform_movie(c) for c in candidates]
        if self.uses_local_data or not movies:
            return movies

        enriched = [None] * len(movies)
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self._enrich_one, m): i for i, m in enumerate(movies)}
            for fut in concurrent.futures.as_completed(futures):
                enriched[futures[fut]] = fut.result()
        return enriched

    def get_movie(self, movie_id):
        """
        Enriched record for one movie.

        Raises:
            MovieNotFoundError: Unknown id (404 from TMDB or not in the local list)
            TMDBError: Any other upstream failure
        """
        if self.uses_local_data:
            return self.local_service.get_movie_by_id(movie_id)
        try:
            movie_id = int(movie_id)
        except (TypeError, ValueError):
            raise MovieNotFoundError(movie_id)
        try:
            return self.cache.get_or_fetch(movie_id, self._fetch_details)
        except TMDBError as e:
            if e.status_code == 404:
                raise MovieNotFoundError(movie_id) from e
            logger.error("Failed to load movie %s: %s", movie_id, e)
            raise

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------
    def _discover(self, filters, limit):
        try:
            data = self.client.discover_movies(filters)
        except TMDBError as e:
            logger.error("Discover query failed for %s: %s", filters, e)
            raise
        return [transform_movie(r) for r in data.get("results", [])[:limit]]

    def discover(self, filters=None, limit=20):
        """Unenriched discover results for a filter bag (filter panel, quick filters)."""
        filters = dict(filters or {})
        if self.uses_local_data:
            movies = [m for m in self.local_service.get_all_movies() if matches_filters(m, filters)]
            return sort_local(movies, filters.get("sort_by"))[:limit]
        return self._discover(filters, limit)

    def search(self, query, limit=20):
        if not query or not query.strip():
            return []
        if self.uses_local_data:
            return self.local_service.search_movies(query)[:limit]
        try:
            data = self.client.search_movies(query.strip())
        except TMDBError as e:
            logger.error("Search for %r failed: %s", query, e)
            raise
        return [transform_movie(r) for r in data.get("results", [])[:limit]]

    def get_personalized_recommendations(self, user_id, preferences, limit=10):
        """
        Discover movies from stored preferences.

        Uses the top three preferred genres, a 7.0 rating floor and the first
        preferred decade's year bounds, sorted by popularity.
        """
        prefs = _as_preferences(preferences)
        genres = _ordered(prefs.genres, PREFERENCE_GENRES)[:MAX_PERSONALIZED_GENRES]
        decades = _ordered(prefs.decades, PREFERENCE_DECADES)

        filters = {"vote_average_gte": PERSONALIZED_MIN_RATING, "sort_by": "popularity.desc"}
        if genres:
            filters["genres"] = genres
        if decades:
            apply_decade(filters, decades[0])
        logger.debug("Personalized filters for %s: %s", user_id, filters)

        if self.uses_local_data:
            ranked = self.local_service.get_recommendations(prefs, limit=None)
            return [m for m in ranked if matches_filters(m, filters, match_genres=False)][:limit]
        return self.enrich_movies(self._discover(filters, limit))

    def get_mood_based_recommendations(self, mood, overrides=None, limit=10):
        """
        Discover movies for a mood id, optionally narrowed by overrides.

        Args:
            mood: Key of MOOD_PARAMS; unknown moods run an unfiltered discover
            overrides: Dict; "genres" replaces the mood genres, "decade" (or a
                list of decades, first one wins) adds year bounds, any other
                key is passed through to discover
            limit: Maximum number of results

        Returns:
            List of enriched Movie
        """
        filters = resolve_mood_params(mood)
        overrides = dict(overrides or {})

        genres = overrides.pop("genres", None)
        if genres:
            filters["genres"] = list(genres)

        decade = overrides.pop("decade", None)
        if isinstance(decade, (list, tuple)):
            decade = decade[0] if decade else None
        if decade:
            apply_decade(filters, decade)

        filters.update({k: v for k, v in overrides.items() if v is not None})
        filters.setdefault("sort_by", "popularity.desc")

        if self.uses_local_data:
            movies = [m for m in self.local_service.get_all_movies() if matches_filters(m, filters)]
            return sort_local(movies, filters.get("sort_by"))[:limit]
        return self.enrich_movies(self._discover(filters, limit))

    def get_related_recommendations(self, movie_id, limit=10):
        """Enriched records for up to ten of a movie's similar titles."""
        limit = min(limit, MAX_RELATED)
        if self.uses_local_data:
            movie = self.local_service.get_movie_by_id(movie_id)
            others = [m for m in self.local_service.get_all_movies() if m.id != movie.id]
            shared = [m for m in others if set(m.genres).intersection(movie.genres)]
            shared.sort(key=lambda m: len(set(m.genres).intersection(movie.genres)), reverse=True)
            return shared[:limit]

        movie = self.get_movie(movie_id)
        # Records rebuilt from ids alone fall back to bare list items
        items = movie.similar_items or [{"id": sid} for sid in movie.similar_movies]
        return self.enrich_movies(items[:limit])

    def update_recommendations_based_on_feedback(self, user_id, liked, disliked, preferences=None, limit=10):
        """
        Fresh recommendations after swipe feedback.

        Related titles of the most recently liked movie, else preference-based
        recommendations. Disliked ids are only excluded from the result.
        """
        disliked_ids = {_movie_id(d) for d in disliked or []}
        if liked:
            movies = self.get_related_recommendations(_movie_id(liked[-1]), limit=limit)
        else:
            movies = self.get_personalized_recommendations(user_id, preferences or Preferences(), limit=limit)
        return [m for m in movies if m.id not in disliked_ids]

    def get_home_sections(self, preferences=None, limit=4):
        """
        Trending, top rated, new releases and recommended lists, fetched concurrently.

        A section whose fetch fails is logged and returned empty.
        """
        prefs = _as_preferences(preferences)
        if self.uses_local_data:
            local = self.local_service
            loaders = {
                "trending": lambda: local.get_trending_movies(limit=limit),
                "top_rated": lambda: local.get_top_rated_movies(limit=limit),
                "new_releases": lambda: local.get_new_releases(limit=limit),
                "recommended": lambda: local.get_recommendations(prefs, limit=limit),
            }
        else:
            client = self.client

            def listing(fetch):
                return lambda: [transform_movie(r) for r in fetch().get("results", [])[:limit]]

            loaders = {
                "trending": listing(client.get_trending_movies),
                "top_rated": listing(client.get_top_rated_movies),
                "new_releases": listing(client.get_now_playing_movies),
            }
            if prefs.genres:
                genre_filters = {"genres": _ordered(prefs.genres, PREFERENCE_GENRES)[:MAX_PERSONALIZED_GENRES]}
                loaders["recommended"] = lambda: self._discover(
                    dict(genre_filters, vote_average_gte=PERSONALIZED_MIN_RATING, sort_by="popularity.desc"),
                    limit,
                )
            else:
                loaders["recommended"] = listing(client.get_popular_movies)

        sections = {name: [] for name in loaders}
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(load): name for name, load in loaders.items()}
            for fut in concurrent.futures.as_completed(futures):
                name = futures[fut]
                try:
                    sections[name] = fut.result()
                except (TMDBError, KeyError) as e:
                    logger.error("Failed to load %s section: %s", name, e)
        return sections


def use_sample_data():
    return str(get_secret("MOVIEMOOD_USE_SAMPLE_DATA", "")).lower() in ("1", "true", "yes")


def create_engine(cache=None, max_workers=5):
    """
    Build an engine from configuration.

    Falls back to the local movie list when sample data is forced or no TMDB
    credentials are configured.
    """
    client = None
    if use_sample_data():
        logger.info("MOVIEMOOD_USE_SAMPLE_DATA set; using the local movie list")
    else:
        try:
            client = TMDBClient()
        except TMDBConfigError:
            logger.warning("No TMDB credentials configured; using the local movie list")
    return RecommendationEngine(client=client, cache=cache, max_workers=max_workers)
