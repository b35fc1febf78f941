"""
Unit tests for the recommendation engine and its movie cache.
"""

import threading
import unittest
from unittest.mock import patch, MagicMock
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from errors import MovieNotFoundError, TMDBConfigError, TMDBError
from interaction_state import FilterState
from models import Movie, Preferences
from movie_service import LocalMovieService
from recommendation_engine import (
    MovieCache,
    RecommendationEngine,
    apply_decade,
    create_engine,
    matches_filters,
    resolve_mood_params
)
from tmdb_client import build_discover_params
from utils import MOOD_PARAMS, release_year


def detail_payload(movie_id, similar=()):
    return {
        "id": movie_id,
        "title": f"Movie {movie_id}",
        "release_date": "2012-05-04",
        "vote_average": 7.5,
        "runtime": 120,
        "genres": [{"id": 28, "name": "Action"}],
        "credits": {"cast": [{"name": "Lead"}], "crew": [{"name": "Director", "job": "Director"}]},
        "similar": {"results": [list_item(s) for s in similar]}
    }


def list_item(movie_id):
    return {"id": movie_id, "title": f"Movie {movie_id}", "genre_ids": [28], "release_date": "2012-05-04"}


class FakeTMDB:
    """Stand-in TMDB client; ids listed in `failing` return the given status."""

    def __init__(self, failing=None, similar=None):
        self.failing = failing or {}
        self.similar = similar or {}
        self.discover_movies = MagicMock(return_value={"results": [list_item(1), list_item(2)]})
        self.get_movie_details = MagicMock(side_effect=self._details)
        self.get_trending_movies = MagicMock(return_value={"results": [list_item(10)]})
        self.get_top_rated_movies = MagicMock(return_value={"results": [list_item(11)]})
        self.get_now_playing_movies = MagicMock(return_value={"results": [list_item(12)]})
        self.get_popular_movies = MagicMock(return_value={"results": [list_item(13)]})
        self.search_movies = MagicMock(return_value={"results": [list_item(14)]})

    def _details(self, movie_id):
        if movie_id in self.failing:
            status = self.failing[movie_id]
            raise TMDBError(f"TMDB request failed: {status}", status_code=status)
        return detail_payload(movie_id, self.similar.get(movie_id, ()))


class TestMovieCache(unittest.TestCase):
    """Test caching, eviction and fetch coalescing."""

    def test_get_or_fetch_caches(self):
        cache = MovieCache()
        fetch = MagicMock(side_effect=lambda mid: Movie(id=mid, title="x"))

        first = cache.get_or_fetch(5, fetch)
        second = cache.get_or_fetch(5, fetch)

        self.assertIs(first, second)
        fetch.assert_called_once_with(5)
        self.assertEqual((cache.hits, cache.misses), (1, 1))
        self.assertIn(5, cache)
        self.assertEqual(len(cache), 1)

    def test_failed_fetch_is_not_cached(self):
        cache = MovieCache()
        fetch = MagicMock(side_effect=[TMDBError("boom"), Movie(id=1, title="ok")])

        with self.assertRaises(TMDBError):
            cache.get_or_fetch(1, fetch)
        self.assertNotIn(1, cache)

        self.assertEqual(cache.get_or_fetch(1, fetch).title, "ok")
        self.assertEqual(fetch.call_count, 2)

    def test_lru_eviction(self):
        """Test the least recently used entry is dropped when bounded."""
        cache = MovieCache(max_entries=2)
        cache.put(1, Movie(id=1, title="a"))
        cache.put(2, Movie(id=2, title="b"))
        cache.get(1)
        cache.put(3, Movie(id=3, title="c"))

        self.assertIn(1, cache)
        self.assertNotIn(2, cache)
        self.assertIn(3, cache)

    def test_clear_resets_counters(self):
        cache = MovieCache()
        cache.get_or_fetch(1, lambda mid: Movie(id=mid, title="a"))
        cache.clear()
        self.assertEqual(len(cache), 0)
        self.assertEqual((cache.hits, cache.misses), (0, 0))
        self.assertIsNone(cache.get(1))

    def test_concurrent_fetches_share_one_request(self):
        """Test threads asking for the same id trigger a single fetch."""
        cache = MovieCache()
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_fetch(movie_id):
            calls.append(movie_id)
            started.set()
            release.wait(5)
            return Movie(id=movie_id, title="slow")

        results = []

        def worker():
            results.append(cache.get_or_fetch(42, slow_fetch))

        owner = threading.Thread(target=worker)
        owner.start()
        started.wait(5)
        waiters = [threading.Thread(target=worker) for _ in range(4)]
        for t in waiters:
            t.start()
        release.set()
        for t in [owner] + waiters:
            t.join(5)

        self.assertEqual(calls, [42])
        self.assertEqual(len(results), 5)
        self.assertTrue(all(r is results[0] for r in results))
        self.assertEqual(cache.misses, 1)
        self.assertEqual(cache.hits, 4)

    def test_interrupted_fetch_releases_waiters(self):
        """Test a non-Exception escaping fetch still unblocks threads on the same id."""

        class Abort(BaseException):
            pass

        cache = MovieCache()
        started = threading.Event()
        release = threading.Event()
        outcomes = []

        def aborting_fetch(movie_id):
            started.set()
            release.wait(5)
            raise Abort()

        def worker():
            try:
                cache.get_or_fetch(7, aborting_fetch)
            except Abort:
                outcomes.append("aborted")

        owner = threading.Thread(target=worker)
        owner.start()
        started.wait(5)
        waiter = threading.Thread(target=worker)
        waiter.start()
        release.set()
        owner.join(5)
        waiter.join(5)

        self.assertFalse(waiter.is_alive())
        self.assertEqual(outcomes, ["aborted", "aborted"])
        self.assertNotIn(7, cache)
        self.assertEqual(cache.get_or_fetch(7, lambda mid: Movie(id=mid, title="ok")).title, "ok")


class TestFilterHelpers(unittest.TestCase):
    """Test mood resolution and local filter matching."""

    def test_resolve_mood_params_returns_copy(self):
        params = resolve_mood_params("date-night")
        params["genres"].append("Horror")
        self.assertNotIn("Horror", MOOD_PARAMS["date-night"]["genres"])

        self.assertEqual(resolve_mood_params("unknown"), {})
        self.assertEqual(resolve_mood_params(None), {})

    def test_apply_decade(self):
        self.assertEqual(apply_decade({}, "1980s"), {"release_year_gte": 1980, "release_year_lte": 1989})
        self.assertEqual(apply_decade({}, "2020s"), {"release_year_gte": 2020})
        self.assertEqual(apply_decade({}, "Older"), {"release_year_lte": 1979})
        self.assertEqual(apply_decade({"a": 1}, "bogus"), {"a": 1})

    def test_matches_filters(self):
        movie = Movie(id=1, title="Heat", release_date="1995-12-15", vote_average=7.9,
                      genres=["Action", "Crime"])

        self.assertTrue(matches_filters(movie, {}))
        self.assertTrue(matches_filters(movie, {"genres": ["Crime", "Drama"]}))
        self.assertFalse(matches_filters(movie, {"genres": ["Comedy"]}))
        self.assertTrue(matches_filters(movie, {"genres": ["Comedy"]}, match_genres=False))
        self.assertFalse(matches_filters(movie, {"genres_any": ["Romance"]}))
        self.assertFalse(matches_filters(movie, {"exclude_genres": ["Crime"]}))
        self.assertTrue(matches_filters(movie, {"release_year_gte": 1990, "release_year_lte": 1999}))
        self.assertFalse(matches_filters(movie, {"release_year": 1996}))
        self.assertFalse(matches_filters(movie, {"release_date_lte": "1995-01-01"}))
        self.assertFalse(matches_filters(movie, {"vote_average_gte": 8.0}))

    def test_genre_overrides_genres_any(self):
        movie = Movie(id=1, title="Heat", genres=["Action", "Crime"])
        self.assertTrue(matches_filters(movie, {"genres": ["Action"], "genres_any": ["Romance"]}))
        self.assertFalse(matches_filters(movie, {"genres_any": ["Romance"]}))


class TestRemoteEngine(unittest.TestCase):
    """Test the engine against a fake TMDB client."""

    def setUp(self):
        self.client = FakeTMDB()
        self.engine = RecommendationEngine(client=self.client, max_workers=3)

    def test_enrich_preserves_order_and_uses_cache(self):
        movies = self.engine.enrich_movies([list_item(3), list_item(1), list_item(2)])

        self.assertEqual([m.id for m in movies], [3, 1, 2])
        self.assertTrue(all(m.director == "Director" for m in movies))
        self.assertEqual(self.client.get_movie_details.call_count, 3)

        self.engine.enrich_movies([list_item(1)])
        self.assertEqual(self.client.get_movie_details.call_count, 3)

    def test_enrich_degrades_failed_items(self):
        """Test a failed detail fetch keeps the list item in place."""
        self.client.failing = {2: 500}

        movies = self.engine.enrich_movies([list_item(1), list_item(2)])

        self.assertEqual([m.id for m in movies], [1, 2])
        self.assertTrue(movies[0].is_enriched)
        self.assertFalse(movies[1].is_enriched)
        self.assertNotIn(2, self.engine.cache)

    def test_get_movie(self):
        self.assertEqual(self.engine.get_movie("7").title, "Movie 7")

        self.client.failing = {404404: 404, 500500: 500}
        with self.assertRaises(MovieNotFoundError):
            self.engine.get_movie(404404)
        with self.assertRaises(TMDBError):
            self.engine.get_movie(500500)
        with self.assertRaises(MovieNotFoundError):
            self.engine.get_movie("not-a-number")

    def test_personalized_filters(self):
        """Test top three genres in option order and the first decade."""
        prefs = Preferences(genres={"Thriller", "Action", "Drama", "Comedy"}, decades={"1990s", "2010s"})

        movies = self.engine.get_personalized_recommendations("u1", prefs, limit=2)

        filters = self.client.discover_movies.call_args[0][0]
        self.assertEqual(filters["genres"], ["Action", "Comedy", "Drama"])
        self.assertEqual(filters["vote_average_gte"], 7)
        self.assertEqual(filters["sort_by"], "popularity.desc")
        self.assertEqual(filters["release_year_gte"], 2010)
        self.assertEqual(filters["release_year_lte"], 2019)
        self.assertEqual([m.id for m in movies], [1, 2])
        self.assertTrue(movies[0].is_enriched)

    def test_personalized_accepts_dict_preferences(self):
        self.engine.get_personalized_recommendations("u1", {"genres": ["War"]})
        filters = self.client.discover_movies.call_args[0][0]
        self.assertEqual(filters["genres"], ["War"])
        self.assertNotIn("release_year_gte", filters)

    def test_mood_overrides(self):
        """Test override genres replace the mood genres and decades add bounds."""
        self.engine.get_mood_based_recommendations(
            "classics",
            {"genres": ["Drama"], "decade": ["1990s", "2000s"], "certification": None}
        )

        filters = self.client.discover_movies.call_args[0][0]
        self.assertEqual(filters["genres"], ["Drama"])
        self.assertEqual(filters["release_year_gte"], 1990)
        self.assertEqual(filters["release_year_lte"], 1999)
        self.assertEqual(filters["release_date_lte"], "2000-12-31")
        self.assertEqual(filters["vote_count_gte"], 500)
        self.assertEqual(filters["sort_by"], "popularity.desc")
        self.assertNotIn("certification", filters)

    def test_mood_keeps_its_own_sort(self):
        self.engine.get_mood_based_recommendations("award-winners")
        filters = self.client.discover_movies.call_args[0][0]
        self.assertEqual(filters["sort_by"], "vote_average.desc")

    def test_discover_failure_propagates(self):
        self.client.discover_movies.side_effect = TMDBError("down", status_code=503)
        with self.assertRaises(TMDBError):
            self.engine.get_mood_based_recommendations("spooky")

    def test_related_keeps_failed_ids_as_list_data(self):
        """Test a similar title whose detail fetch fails stays in place unenriched."""
        self.client.similar = {1: [11, 12, 13]}
        self.client.failing = {12: 500}

        related = self.engine.get_related_recommendations(1)

        self.assertEqual([m.id for m in related], [11, 12, 13])
        self.assertTrue(related[0].is_enriched)
        self.assertFalse(related[1].is_enriched)
        self.assertEqual(related[1].title, "Movie 12")
        self.assertNotIn(12, self.engine.cache)

    def test_related_from_ids_only(self):
        self.engine.cache.put(1, Movie(id=1, title="a", similar_movies=[11, 12]))
        self.client.failing = {12: 500}

        related = self.engine.get_related_recommendations(1)

        self.assertEqual([m.id for m in related], [11, 12])

    def test_feedback_uses_last_liked_and_drops_disliked(self):
        self.client.similar = {5: [20, 21, 22]}

        movies = self.engine.update_recommendations_based_on_feedback(
            "u1", liked=[Movie(id=4, title="a"), {"id": 5}], disliked=[21]
        )

        self.assertEqual([m.id for m in movies], [20, 22])

    def test_feedback_without_likes_uses_preferences(self):
        movies = self.engine.update_recommendations_based_on_feedback(
            "u1", liked=[], disliked=[2], preferences={"genres": ["Action"]}
        )
        self.assertEqual([m.id for m in movies], [1])
        self.client.discover_movies.assert_called_once()

    def test_home_sections_tolerate_failures(self):
        """Test a failing section comes back empty while the rest load."""
        self.client.get_top_rated_movies.side_effect = TMDBError("down")

        sections = self.engine.get_home_sections()

        self.assertEqual([m.id for m in sections["trending"]], [10])
        self.assertEqual(sections["top_rated"], [])
        self.assertEqual([m.id for m in sections["new_releases"]], [12])
        self.assertEqual([m.id for m in sections["recommended"]], [13])

    def test_home_recommended_uses_preferred_genres(self):
        sections = self.engine.get_home_sections(Preferences(genres={"Drama"}))

        self.assertEqual([m.id for m in sections["recommended"]], [1, 2])
        self.client.get_popular_movies.assert_not_called()
        filters = self.client.discover_movies.call_args[0][0]
        self.assertEqual(filters["genres"], ["Drama"])

    def test_search(self):
        self.assertEqual([m.id for m in self.engine.search("alien")], [14])
        self.assertEqual(self.engine.search("   "), [])
        self.client.search_movies.assert_called_once_with("alien")


class TestLocalEngine(unittest.TestCase):
    """Test the engine answering from the sample list."""

    def setUp(self):
        self.engine = RecommendationEngine(local_service=LocalMovieService(latency=False))

    def test_uses_local_data(self):
        self.assertTrue(self.engine.uses_local_data)
        self.assertEqual(self.engine.get_movie(6).title, "Inception")
        with self.assertRaises(MovieNotFoundError):
            self.engine.get_movie(99)

    def test_personalized(self):
        """Test genre overlap ranking narrowed to the preferred decade."""
        prefs = Preferences(genres={"Action"}, decades={"2010s"})
        movies = self.engine.get_personalized_recommendations("u1", prefs)
        self.assertEqual([m.id for m in movies], [6, 7, 8])

    def test_mood(self):
        movies = self.engine.get_mood_based_recommendations("sci-fi")
        self.assertEqual([m.id for m in movies], [6, 7])

    def test_every_mood_respects_its_filters(self):
        for mood, params in MOOD_PARAMS.items():
            with self.subTest(mood=mood):
                for movie in self.engine.get_mood_based_recommendations(mood):
                    if params.get("genres"):
                        self.assertTrue(set(params["genres"]).intersection(movie.genres))
                    self.assertFalse(set(params.get("exclude_genres", [])).intersection(movie.genres))
                    self.assertGreaterEqual(movie.vote_average, params["vote_average_gte"])

    def test_mood_sort_applies_to_local_data(self):
        movies = self.engine.get_mood_based_recommendations("award-winners")
        ratings = [m.vote_average for m in movies]
        self.assertEqual(ratings, sorted(ratings, reverse=True))
        self.assertTrue(all(r >= 8.0 for r in ratings))

    def test_classics_mood(self):
        """Test classics only returns well-rated films released by 2000."""
        movies = self.engine.get_mood_based_recommendations("classics")

        self.assertEqual([m.id for m in movies], [1, 2, 4, 5])
        for movie in movies:
            self.assertGreaterEqual(movie.vote_average, 7.5)
            self.assertLessEqual(release_year(movie.release_date), 2000)

    def test_genre_and_mood_agree_across_backends(self):
        """Test a panel genre wins over its mood for both TMDB and local data."""
        filters = FilterState()
        filters.select_genre("Action")
        filters.select_mood("Emotional")
        bag = filters.to_filter_bag()

        self.assertEqual(build_discover_params(bag)["with_genres"], "28")
        self.assertEqual([m.id for m in self.engine.discover(bag)], [3, 6])

    def test_related(self):
        related = self.engine.get_related_recommendations(6)
        self.assertEqual([m.id for m in related], [7, 3])

    def test_discover_sorts(self):
        movies = self.engine.discover({"genres_any": ["Comedy", "Science Fiction"],
                                       "sort_by": "release_date.desc"})
        self.assertEqual([m.id for m in movies], [8, 7, 6])

    def test_enrich_is_a_no_op(self):
        movies = self.engine.enrich_movies([list_item(1)])
        self.assertEqual(movies[0].id, 1)
        self.assertEqual(len(self.engine.cache), 0)

    def test_home_sections(self):
        sections = self.engine.get_home_sections(Preferences(genres={"Comedy"}))
        self.assertEqual(set(sections), {"trending", "top_rated", "new_releases", "recommended"})
        self.assertEqual(len(sections["trending"]), 4)
        self.assertEqual(sections["recommended"][0].id, 8)
        self.assertEqual([m.id for m in sections["new_releases"]], [8])


class TestCreateEngine(unittest.TestCase):
    """Test engine construction from configuration."""

    @patch('recommendation_engine.get_secret', return_value=None)
    @patch('recommendation_engine.TMDBClient')
    def test_falls_back_without_credentials(self, mock_client, mock_secret):
        mock_client.side_effect = TMDBConfigError("missing")
        engine = create_engine()
        self.assertTrue(engine.uses_local_data)

    @patch('recommendation_engine.get_secret', return_value=None)
    @patch('recommendation_engine.TMDBClient')
    def test_uses_tmdb_when_configured(self, mock_client, mock_secret):
        engine = create_engine(max_workers=2)
        self.assertIs(engine.client, mock_client.return_value)
        self.assertEqual(engine.max_workers, 2)

    @patch('recommendation_engine.get_secret', return_value="true")
    @patch('recommendation_engine.TMDBClient')
    def test_sample_data_flag(self, mock_client, mock_secret):
        engine = create_engine()
        self.assertTrue(engine.uses_local_data)
        mock_client.assert_not_called()


if __name__ == '__main__':
    unittest.main(verbosity=2)
