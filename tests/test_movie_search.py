"""
Unit tests for movie search functionality.
"""

import unittest
from unittest.mock import patch, MagicMock
from types import SimpleNamespace
import sys
import os

from tmdbv3api.exceptions import TMDbException

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from movie_search import (
    calculate_title_similarity,
    configure_tmdb,
    fuzzy_match_titles,
    fuzzy_search_movies,
    generate_search_variations
)
from movie_service import SAMPLE_MOVIES


def tmdb_movie(movie_id, title, release_date="2010-07-15"):
    return SimpleNamespace(id=movie_id, title=title, release_date=release_date, poster_path=f"/{movie_id}.jpg")


class TestMovieSearch(unittest.TestCase):

    def test_generate_search_variations(self):
        """Test search variation generation."""
        # Test basic functionality
        variations = generate_search_variations("3 idiots")
        self.assertEqual(variations[0], "3 idiots")
        self.assertIn("three idiots", variations)

        # Test number conversion
        variations = generate_search_variations("three idiots")
        self.assertIn("3 idiots", variations)

        # Test digit/letter splitting
        self.assertEqual(generate_search_variations("3idiots"), ["3idiots", "3 idiots"])

        # Test cleanup and significant words
        variations = generate_search_variations("The Dark-Knight!")
        self.assertEqual(variations, ["The Dark-Knight!", "the dark knight", "dark", "knight"])

        # Test limit on variations
        variations = generate_search_variations("very long movie title with many words")
        self.assertLessEqual(len(variations), 5)

    def test_calculate_title_similarity(self):
        """Test title similarity calculation."""
        # Test exact match
        self.assertEqual(calculate_title_similarity("Inception", "inception"), 1.0)

        # Test substring match
        self.assertEqual(calculate_title_similarity("dark knight", "The Dark Knight"), 0.95)

        # Test word overlap regardless of order
        self.assertAlmostEqual(calculate_title_similarity("knight dark", "The Dark Knight"), 1.0)

        # Test typo tolerance
        self.assertAlmostEqual(calculate_title_similarity("Inceptoin", "Inception"), 0.9)

        # Test unrelated and empty titles
        self.assertLess(calculate_title_similarity("Frozen", "Pulp Fiction"), 0.5)
        self.assertEqual(calculate_title_similarity("", "Inception"), 0.0)
        self.assertEqual(calculate_title_similarity("Inception", "  "), 0.0)

    @patch('movie_search.Movie')
    def test_fuzzy_search_direct_hits(self, mock_movie_class):
        """Test that three or more direct hits are returned as-is."""
        mock_api = MagicMock()
        mock_movie_class.return_value = mock_api
        mock_api.search.return_value = [
            tmdb_movie(1, "Alien", "1979-05-25"),
            tmdb_movie(2, "Aliens", "1986-07-18"),
            tmdb_movie(3, "Alien 3", ""),
            tmdb_movie(None, "No id")
        ]

        results = fuzzy_search_movies("alien")

        self.assertEqual([r["id"] for r in results], [1, 2, 3])
        self.assertEqual(results[0]["year"], "1979")
        self.assertEqual(results[2]["year"], "")
        self.assertTrue(all(r["similarity"] == 1.0 for r in results))
        mock_api.search.assert_called_once_with("alien")

    @patch('movie_search.Movie')
    def test_fuzzy_search_variations(self, mock_movie_class):
        """Test variation searches recover a misspelled title."""
        mock_api = MagicMock()
        mock_movie_class.return_value = mock_api
        mock_api.search.side_effect = [
            [],
            [tmdb_movie(27205, "Inception"), tmdb_movie(99, "Zzz")]
        ]

        results = fuzzy_search_movies("Inceptoin")

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]["title"], "Inception")
        self.assertAlmostEqual(results[0]["similarity"], 0.9)
        self.assertEqual(results[0]["poster_path"], "/27205.jpg")

    @patch('movie_search.Movie')
    def test_fuzzy_search_deduplicates(self, mock_movie_class):
        mock_api = MagicMock()
        mock_movie_class.return_value = mock_api
        dark_knight = tmdb_movie(155, "The Dark Knight", "2008-07-16")
        mock_api.search.side_effect = lambda term: [] if term == "Dark Knigth" else [dark_knight]

        results = fuzzy_search_movies("Dark Knigth", max_results=5)

        self.assertEqual([r["id"] for r in results], [155])
        self.assertGreater(mock_api.search.call_count, 1)

    @patch('movie_search.Movie')
    def test_fuzzy_search_api_error(self, mock_movie_class):
        """Test provider errors return no results."""
        mock_api = MagicMock()
        mock_movie_class.return_value = mock_api
        mock_api.search.side_effect = TMDbException("Invalid API key")

        self.assertEqual(fuzzy_search_movies("anything"), [])

    @patch('movie_search.Movie')
    def test_fuzzy_search_blank_query(self, mock_movie_class):
        self.assertEqual(fuzzy_search_movies("   "), [])
        mock_movie_class.assert_not_called()

    @patch('movie_search.get_secret', return_value=None)
    @patch('movie_search.TMDb')
    def test_configure_tmdb(self, mock_tmdb_class, mock_secret):
        self.assertFalse(configure_tmdb())
        mock_tmdb_class.assert_not_called()

        self.assertTrue(configure_tmdb("key-123"))
        self.assertEqual(mock_tmdb_class.return_value.api_key, "key-123")

    def test_fuzzy_match_titles(self):
        """Test local title matching for the sample list."""
        results = fuzzy_match_titles("interstelar", SAMPLE_MOVIES)
        self.assertEqual(results[0].title, "Interstellar")

        self.assertEqual(fuzzy_match_titles("", SAMPLE_MOVIES), [])
        self.assertEqual(fuzzy_match_titles("qqqqqqqq", SAMPLE_MOVIES, similarity_threshold=0.9), [])


if __name__ == '__main__':
    unittest.main(verbosity=2)
