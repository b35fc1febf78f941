"""
Local movie service backed by a fixed demo list.

Used when no TMDB credentials are configured. Accessors sleep briefly to
mimic remote latency; pass latency=False to skip the delay.
"""

import random
import time

from errors import MovieNotFoundError
from models import Movie
from utils import MOOD_GENRE_MAP, year_in_decade

SAMPLE_MOVIES = [
    Movie(
        id=1,
        title="The Shawshank Redemption",
        poster_path="/q6y0Go1tsGEsmtFryDOJo3dEmqu.jpg",
        backdrop_path="/j9XKiZrVeViAixVRzCta7h1VU9W.jpg",
        overview="Framed in the 1940s for the double murder of his wife and her lover, upstanding banker "
                 "Andy Dufresne begins a new life at the Shawshank prison, where he puts his accounting "
                 "skills to work for an amoral warden.",
        release_date="1994-09-23",
        vote_average=8.7,
        genres=["Drama", "Crime"],
    ),
    Movie(
        id=2,
        title="The Godfather",
        poster_path="/3bhkrj58Vtu7enYsRolD1fZdja1.jpg",
        backdrop_path="/tmU7GeKVybMWFButWEGl2M4GeiP.jpg",
        overview="Spanning the years 1945 to 1955, a chronicle of the fictional Italian-American Corleone "
                 "crime family. When organized crime family patriarch, Vito Corleone barely survives an "
                 "attempt on his life, his youngest son, Michael steps in to take care of the would-be "
                 "killers, launching a campaign of bloody revenge.",
        release_date="1972-03-14",
        vote_average=8.7,
        genres=["Drama", "Crime"],
    ),
    Movie(
        id=3,
        title="The Dark Knight",
        poster_path="/1hRoyzDtpgMU7Dz4JF22RANzQO7.jpg",
        backdrop_path="/nMKdUUepR0i5zn0y1T4CsSB5chy.jpg",
        overview="Batman raises the stakes in his war on crime. With the help of Lt. Jim Gordon and "
                 "District Attorney Harvey Dent, Batman sets out to dismantle the remaining criminal "
                 "organizations that plague the streets.",
        release_date="2008-07-16",
        vote_average=8.5,
        genres=["Action", "Crime", "Drama", "Thriller"],
    ),
    Movie(
        id=4,
        title="Pulp Fiction",
        poster_path="/d5iIlFn5s0ImszYzBPb8JPIfbXD.jpg",
        backdrop_path="/suaEOtk1N1sgg2MTM7oZd2cfVp3.jpg",
        overview="A burger-loving hit man, his philosophical partner, a drug-addled gangster's moll and a "
                 "washed-up boxer converge in this sprawling, comedic crime caper.",
        release_date="1994-09-10",
        vote_average=8.5,
        genres=["Thriller", "Crime"],
    ),
    Movie(
        id=5,
        title="Fight Club",
        poster_path="/pB8BM7pdSp6B6Ih7QZ4DrQ3PmJK.jpg",
        backdrop_path="/hZkgoQYus5vegHoetLkCJzb17zJ.jpg",
        overview="A ticking-time-bomb insomniac and a slippery soap salesman channel primal male "
                 "aggression into a shocking new form of therapy.",
        release_date="1999-10-15",
        vote_average=8.4,
        genres=["Drama", "Thriller"],
    ),
    Movie(
        id=6,
        title="Inception",
        poster_path="/9gk7adHYeDvHkCSEqAvQNLV5Uge.jpg",
        backdrop_path="/s3TBrRGB1iav7gFOCNx3H31MoES.jpg",
        overview="Cobb, a skilled thief who commits corporate espionage by infiltrating the subconscious "
                 "of his targets is offered a chance to regain his old life as payment for a task "
                 "considered to be impossible.",
        release_date="2010-07-15",
        vote_average=8.3,
        genres=["Action", "Science Fiction", "Adventure"],
    ),
    Movie(
        id=7,
        title="Interstellar",
        poster_path="/gEU2QniE6E77NI6lCU6MxlNBvIx.jpg",
        backdrop_path="/xJHokMbljvjADYdit5fK5VQsXEG.jpg",
        overview="The adventures of a group of explorers who make use of a newly discovered wormhole to "
                 "surpass the limitations on human space travel and conquer the vast distances involved "
                 "in an interstellar voyage.",
        release_date="2014-11-05",
        vote_average=8.3,
        genres=["Adventure", "Drama", "Science Fiction"],
    ),
    Movie(
        id=8,
        title="Parasite",
        poster_path="/7IiTTgloJzvGI1TAYymCfbfl3vT.jpg",
        backdrop_path="/ApiBzeaa95TNYliSbQ8pJv4Fje7.jpg",
        overview="All unemployed, Ki-taek's family takes peculiar interest in the wealthy and glamorous "
                 "Parks for their livelihood until they get entangled in an unexpected incident.",
        release_date="2019-05-30",
        vote_average=8.5,
        genres=["Comedy", "Thriller", "Drama"],
    ),
]

# Simulated round-trip per accessor, in seconds
DELAYS = {
    "all": 0.5,
    "by_id": 0.3,
    "filter": 0.6,
    "recommended": 0.8,
    "trending": 0.5,
    "top_rated": 0.5,
    "new_releases": 0.5,
    "search": 0.5,
}


def matches_mood(movie, mood):
    relevant = MOOD_GENRE_MAP.get(mood, [])
    if not relevant:
        return True
    return any(genre in relevant for genre in movie.genres)


class LocalMovieService:
    """Read-only accessors over a fixed list of Movie records."""

    def __init__(self, movies=None, latency=True):
        self._movies = tuple(movies if movies is not None else SAMPLE_MOVIES)
        self.latency = latency

    def _wait(self, op):
        if self.latency:
            time.sleep(DELAYS[op])

    def get_all_movies(self):
        self._wait("all")
        return list(self._movies)

    def get_movie_by_id(self, movie_id):
        """
        Look up a movie by id.

        Raises:
            MovieNotFoundError: No movie with that id
        """
        self._wait("by_id")
        try:
            wanted = int(movie_id)
        except (TypeError, ValueError):
            raise MovieNotFoundError(movie_id)
        for movie in self._movies:
            if movie.id == wanted:
                return movie
        raise MovieNotFoundError(movie_id)

    def filter_movies(self, genre=None, decade=None, mood=None):
        """Filter by genre membership, decade year range and mood genre overlap."""
        self._wait("filter")
        movies = list(self._movies)
        if genre:
            movies = [m for m in movies if genre in m.genres]
        if decade:
            movies = [m for m in movies if year_in_decade(m.year, decade)]
        if mood:
            movies = [m for m in movies if matches_mood(m, mood)]
        return movies

    def get_recommendations(self, preferences=None, limit=4):
        """Order by number of genres shared with the preferred genres."""
        self._wait("recommended")
        movies = list(self._movies)
        if isinstance(preferences, dict):
            preferred = set(preferences.get("genres") or [])
        else:
            preferred = set(getattr(preferences, "genres", None) or [])
        if preferred:
            # sorted() is stable, so ties keep list order
            movies = sorted(movies, key=lambda m: len(preferred.intersection(m.genres)), reverse=True)
        return movies[:limit]

    def get_trending_movies(self, limit=4, rng=None):
        self._wait("trending")
        movies = list(self._movies)
        (rng or random).shuffle(movies)
        return movies[:limit]

    def get_top_rated_movies(self, limit=4):
        self._wait("top_rated")
        return sorted(self._movies, key=lambda m: m.vote_average, reverse=True)[:limit]

    def get_new_releases(self, limit=4, min_year=2019):
        self._wait("new_releases")
        recent = [m for m in self._movies if (m.year or 0) >= min_year]
        return sorted(recent, key=lambda m: m.release_date, reverse=True)[:limit]

    def search_movies(self, query):
        self._wait("search")
        needle = (query or "").strip().lower()
        if not needle:
            return []
        return [m for m in self._movies if needle in m.title.lower()]
