"""
Movie title search with fuzzy matching and typo tolerance.
"""

import logging
import re
from difflib import SequenceMatcher

import requests
from tmdbv3api import Movie, TMDb
from tmdbv3api.exceptions import TMDbException

from utils import get_secret, release_year

logger = logging.getLogger(__name__)

STOP_WORDS = {'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by'}

NUMBER_WORDS = {
    '1': 'one', '2': 'two', '3': 'three', '4': 'four', '5': 'five',
    '6': 'six', '7': 'seven', '8': 'eight', '9': 'nine', '10': 'ten'
}
NUMBER_WORDS.update({word: digit for digit, word in list(NUMBER_WORDS.items())})


def configure_tmdb(api_key=None):
    """Point the tmdbv3api singleton at the configured key; returns False if none."""
    api_key = api_key or get_secret("TMDB_API_KEY")
    if not api_key:
        return False
    tmdb = TMDb()
    tmdb.api_key = api_key
    tmdb.language = "en"
    return True


def generate_search_variations(query):
    """
    Generate focused search variations with basic typo tolerance.

    Args:
        query: Original search query

    Returns:
        List of at most five search variations, original query first
    """
    variations = [query.strip()]

    def add(term):
        if term and term not in variations:
            variations.append(term)

    clean_query = re.sub(r'[^\w\s]', ' ', query.lower())
    clean_query = re.sub(r'\s+', ' ', clean_query).strip()
    add(clean_query)

    words = clean_query.split()
    for i, word in enumerate(words):
        if word in NUMBER_WORDS:
            swapped = words.copy()
            swapped[i] = NUMBER_WORDS[word]
            add(' '.join(swapped))

    # "3idiots" -> "3 idiots"
    if ' ' not in clean_query and len(clean_query) > 3:
        add(re.sub(r'^(\d+)([a-z])', r'\1 \2', clean_query))

    for word in words:
        if len(word) > 3 and word not in STOP_WORDS:
            add(word)

    return variations[:5]


def calculate_title_similarity(query, title):
    """
    Calculate similarity between query and movie title using multiple methods.

    Args:
        query: Search query
        title: Movie title to compare against

    Returns:
        Float similarity score between 0 and 1
    """
    query_lower = query.lower().strip()
    title_lower = title.lower().strip()

    if not query_lower or not title_lower:
        return 0.0

    if query_lower == title_lower:
        return 1.0

    if query_lower in title_lower or title_lower in query_lower:
        return 0.95

    # Word-based similarity without stop words
    query_words = set(re.sub(r'[^\w\s]', ' ', query_lower).split()) - STOP_WORDS
    title_words = set(re.sub(r'[^\w\s]', ' ', title_lower).split()) - STOP_WORDS

    if query_words and title_words:
        jaccard = len(query_words & title_words) / len(query_words | title_words)
        if jaccard >= 0.5:
            return 0.8 + (jaccard * 0.2)

        # Fuzzy word matching for typos
        fuzzy_matches = 0
        for q_word in query_words:
            for t_word in title_words:
                if len(q_word) > 2 and len(t_word) > 2:
                    if SequenceMatcher(None, q_word, t_word).ratio() >= 0.7:
                        fuzzy_matches += 1
                        break

        fuzzy_ratio = fuzzy_matches / len(query_words)
        if fuzzy_ratio >= 0.5:
            return 0.7 + (fuzzy_ratio * 0.2)

    # Character-level fallback
    return SequenceMatcher(None, query_lower, title_lower).ratio()


def _result_dict(movie, similarity):
    release_date = getattr(movie, 'release_date', '') or ''
    year = release_year(release_date)
    return {
        "title": getattr(movie, 'title', ''),
        "year": str(year) if year else '',
        "id": getattr(movie, 'id', None),
        "poster_path": getattr(movie, 'poster_path', None),
        "similarity": similarity
    }


def fuzzy_search_movies(query, max_results=10, similarity_threshold=0.3):
    """
    Search TMDB by title, falling back to variations when few hits come back.

    Args:
        query: Search query
        max_results: Maximum number of results to return
        similarity_threshold: Minimum similarity score for variation hits

    Returns:
        List of dicts with title, year, id, poster_path and similarity
    """
    if not query or not query.strip():
        return []

    movie_api = Movie()
    try:
        results = list(movie_api.search(query.strip()) or [])
    except (TMDbException, requests.RequestException) as e:
        logger.error("Title search for %r failed: %s", query, e)
        return []

    direct = [m for m in results if getattr(m, 'title', None) and getattr(m, 'id', None)]
    if len(direct) >= 3:
        return [_result_dict(m, 1.0) for m in direct[:max_results]]

    fuzzy_results = [_result_dict(m, calculate_title_similarity(query, m.title)) for m in direct]
    for search_term in generate_search_variations(query)[1:]:
        try:
            variation_results = movie_api.search(search_term) or []
        except (TMDbException, requests.RequestException) as e:
            logger.warning("Variation search %r failed: %s", search_term, e)
            continue
        for movie in list(variation_results)[:12]:
            title = getattr(movie, 'title', '')
            if not title or not getattr(movie, 'id', None):
                continue
            similarity = calculate_title_similarity(query, title)
            if similarity >= similarity_threshold:
                fuzzy_results.append(_result_dict(movie, similarity))

    # Keep the best-scoring copy of each id
    fuzzy_results.sort(key=lambda x: x['similarity'], reverse=True)
    seen_ids = set()
    unique_results = []
    for result in fuzzy_results:
        if result['id'] not in seen_ids:
            seen_ids.add(result['id'])
            unique_results.append(result)

    return unique_results[:max_results]


def fuzzy_match_titles(query, movies, max_results=10, similarity_threshold=0.3):
    """Rank local Movie records by title similarity to the query."""
    if not query or not query.strip():
        return []
    scored = [(m, calculate_title_similarity(query, m.title)) for m in movies]
    scored = [pair for pair in scored if pair[1] >= similarity_threshold]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return [m for m, _ in scored[:max_results]]
