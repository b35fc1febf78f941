"""
Presentation state for the swipe deck, the featured carousel and the filter panel.

Plain Python objects with no Streamlit dependency so the pages stay thin.
"""

import time

from models import Preferences
from utils import DECADE_YEAR_RANGES, MOOD_GENRE_MAP, QUICK_FILTERS, parse_rating_filter, quick_filter_params

IDLE = "idle"
DRAGGING = "dragging"
COMMITTED_LEFT = "committed-left"
COMMITTED_RIGHT = "committed-right"


def commit_threshold_for_width(width):
    """Commit distance for a viewport: 20% of its width."""
    return width * 0.2


def stack_transform(index):
    """Offset and scale of the card `index` places below the top of the deck."""
    return {"translate_y": index * 10, "scale": 1 - index * 0.05}


class SwipeCard:
    """
    Drag gesture on the top card of the swipe deck.

    A drag that ends more than commit_threshold px to the right is a like,
    to the left a dislike; anything shorter snaps back.
    """

    def __init__(self, start_threshold=10, direction_threshold=50, commit_threshold=100,
                 rotation_factor=0.05, on_like=None, on_dislike=None):
        self.start_threshold = start_threshold
        self.direction_threshold = direction_threshold
        self.commit_threshold = commit_threshold
        self.rotation_factor = rotation_factor
        self.on_like = on_like
        self.on_dislike = on_dislike
        self.reset()

    @classmethod
    def for_viewport(cls, width, **kwargs):
        return cls(commit_threshold=commit_threshold_for_width(width), **kwargs)

    def reset(self):
        self.state = IDLE
        self.start = None
        self.offset = 0
        self.direction = None

    def press(self, x, y):
        if self.state in (COMMITTED_LEFT, COMMITTED_RIGHT):
            return
        self.start = (x, y)
        self.offset = 0
        self.direction = None
        self.state = IDLE

    def move(self, x, y):
        """Track a pointer move; vertical-dominant moves are treated as scrolling."""
        if self.start is None or self.state in (COMMITTED_LEFT, COMMITTED_RIGHT):
            return
        dx = x - self.start[0]
        dy = y - self.start[1]
        if abs(dx) <= abs(dy) * 2:
            return
        if self.state == IDLE:
            if abs(dx) <= self.start_threshold:
                return
            self.state = DRAGGING

        self.offset = dx
        if dx > self.direction_threshold:
            self.direction = "right"
        elif dx < -self.direction_threshold:
            self.direction = "left"
        else:
            self.direction = None

    def release(self, item=None):
        """
        End the gesture.

        Args:
            item: Passed to on_like / on_dislike when the swipe commits

        Returns:
            The resulting state
        """
        self.start = None
        if self.state != DRAGGING:
            return self.state

        if self.offset > self.commit_threshold:
            self.state = COMMITTED_RIGHT
            if self.on_like:
                self.on_like(item)
        elif self.offset < -self.commit_threshold:
            self.state = COMMITTED_LEFT
            if self.on_dislike:
                self.on_dislike(item)
        else:
            self.state = IDLE
        self.offset = 0
        self.direction = None
        return self.state

    def fling(self, direction, item=None):
        """Button equivalent of a full swipe: 'right' likes, 'left' dislikes."""
        if direction not in ("left", "right"):
            raise ValueError(f"Unknown swipe direction: {direction}")
        distance = self.commit_threshold + 1
        self.reset()
        self.press(0, 0)
        self.move(distance if direction == "right" else -distance, 0)
        return self.release(item)

    @property
    def committed(self):
        return self.state in (COMMITTED_LEFT, COMMITTED_RIGHT)

    def transform(self):
        """Offset, rotation in degrees, scale, and whether a snap-back animation runs."""
        return {
            "offset": self.offset,
            "rotation": self.offset * self.rotation_factor,
            "scale": 1.0,
            "animating": self.offset == 0
        }


class Carousel:
    """Featured slideshow with auto-advance and a post-transition cooldown."""

    def __init__(self, items, interval=8.0, cooldown=0.5, clock=time.monotonic):
        self.items = list(items)
        self.interval = interval
        self.cooldown = cooldown
        self.clock = clock
        self.index = 0
        self.transitioning = False
        self._changed_at = clock()

    @property
    def current(self):
        return self.items[self.index] if self.items else None

    def _can_move(self):
        return len(self.items) > 1 and not self.transitioning

    def _show(self, index):
        self.index = index
        self.transitioning = True
        self._changed_at = self.clock()

    def next(self):
        if not self._can_move():
            return False
        self._show((self.index + 1) % len(self.items))
        return True

    def previous(self):
        if not self._can_move():
            return False
        self._show((self.index - 1) % len(self.items))
        return True

    def go_to(self, index):
        if not self._can_move() or not 0 <= index < len(self.items):
            return False
        self._show(index)
        return True

    def tick(self):
        """Advance time: end the cooldown, then auto-advance once the interval has passed."""
        elapsed = self.clock() - self._changed_at
        if self.transitioning and elapsed >= self.cooldown:
            self.transitioning = False
        if len(self.items) > 1 and elapsed >= self.interval:
            self.transitioning = False
            return self.next()
        return False


class FilterState:
    """Single-select genre, decade and mood plus toggleable quick filters."""

    def __init__(self):
        self.clear()

    def clear(self):
        self.genre = None
        self.decade = None
        self.mood = None
        self.min_rating = None
        self.sort_by = None
        self.quick_filters = set()

    # Choosing the selected value again turns it off
    def select_genre(self, genre):
        self.genre = None if genre == self.genre else genre

    def select_decade(self, decade):
        self.decade = None if decade == self.decade else decade

    def select_mood(self, mood):
        self.mood = None if mood == self.mood else mood

    def set_min_rating(self, value):
        """Accepts a rating label such as '8+' or a number."""
        self.min_rating = parse_rating_filter(value) if isinstance(value, str) else value

    def toggle_quick_filter(self, name):
        if name not in QUICK_FILTERS:
            raise ValueError(f"Unknown quick filter: {name}")
        self.quick_filters.symmetric_difference_update({name})

    @property
    def has_active_filters(self):
        return bool(self.genre or self.decade or self.mood or self.min_rating
                    or self.sort_by or self.quick_filters)

    def to_filter_bag(self):
        bag = {}
        if self.genre:
            bag["genres"] = [self.genre]
        # An explicit genre overrides the mood genres
        if self.mood in MOOD_GENRE_MAP and not self.genre:
            bag["genres_any"] = list(MOOD_GENRE_MAP[self.mood])
        if self.decade in DECADE_YEAR_RANGES:
            start, end = DECADE_YEAR_RANGES[self.decade]
            if start is not None:
                bag["release_year_gte"] = start
            if end is not None:
                bag["release_year_lte"] = end
        for name in sorted(self.quick_filters):
            bag.update(quick_filter_params(name))
        if self.min_rating is not None:
            bag["vote_average_gte"] = self.min_rating
        if self.sort_by:
            bag["sort_by"] = self.sort_by
        return bag

    def to_preferences(self):
        return Preferences(
            genres={self.genre} if self.genre else set(),
            decades={self.decade} if self.decade else set(),
            moods={self.mood} if self.mood else set()
        )
