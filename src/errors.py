"""
Exception types shared across the movie discovery modules.
"""


class MovieMoodError(Exception):
    """Base class for every error raised by this package."""


class TMDBConfigError(MovieMoodError):
    """No TMDB API key or read token is configured."""


class TMDBError(MovieMoodError):
    """A TMDB request failed (non-2xx status or transport error)."""

    def __init__(self, message, status_code=None, endpoint=None):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class MovieNotFoundError(MovieMoodError):
    """Requested movie id is not in the local movie list."""

    def __init__(self, movie_id):
        super().__init__("Movie not found")
        self.movie_id = movie_id


class AuthError(MovieMoodError):
    """Sign-up, sign-in or password reset was rejected by the auth backend."""

    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class StoreError(MovieMoodError):
    """The document store could not complete a read or write."""


class UserNotFoundError(StoreError):
    def __init__(self, uid):
        super().__init__("User not found")
        self.uid = uid


class InvalidRatingError(MovieMoodError, ValueError):
    """Rating is not an integer between 1 and 5."""


class InvalidPreferenceError(MovieMoodError, ValueError):
    """Preference value is not one of the fixed genre/decade/mood options."""
