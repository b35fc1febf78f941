"""
Unit tests for the featured carousel wiring in the Streamlit app.
"""

import importlib
import unittest
from unittest.mock import patch, MagicMock
from types import SimpleNamespace
import sys
import os

# Add project root and src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from interaction_state import Carousel
from models import Movie


class FakeClock:

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def import_main_app(mock_fragment):
    """Import main_app with st.fragment replaced so the render function stays plain."""
    mock_fragment.return_value = lambda func: func
    sys.modules.pop('main_app', None)
    return importlib.import_module('main_app')


class TestFeaturedCarousel(unittest.TestCase):

    def setUp(self):
        with patch('streamlit.fragment') as mock_fragment:
            self.app = import_main_app(mock_fragment)
        self.fragment_calls = mock_fragment.call_args_list
        self.addCleanup(sys.modules.pop, 'main_app', None)

    def test_carousel_reruns_on_a_timer(self):
        """Test the carousel fragment reruns often enough to catch the interval."""
        self.assertIn(((), {"run_every": self.app.CAROUSEL_POLL_SECONDS}),
                      [(c.args, c.kwargs) for c in self.fragment_calls])
        self.assertLess(self.app.CAROUSEL_POLL_SECONDS, self.app.CAROUSEL_INTERVAL)

    def test_idle_rerun_advances_after_interval(self):
        """Test a rerun with no input moves to the next slide once 8 s have passed."""
        clock = FakeClock()
        movies = [Movie(id=1, title="A"), Movie(id=2, title="B")]
        carousel = Carousel(movies, interval=self.app.CAROUSEL_INTERVAL, clock=clock)

        mock_st = MagicMock()
        mock_st.session_state = SimpleNamespace(carousel=carousel)
        mock_st.columns.return_value = [MagicMock(), MagicMock(), MagicMock()]
        mock_st.button.return_value = False

        with patch.object(self.app, 'st', mock_st):
            clock.advance(self.app.CAROUSEL_POLL_SECONDS)
            self.app.render_featured_carousel()
            self.assertEqual(carousel.index, 0)

            clock.advance(self.app.CAROUSEL_INTERVAL)
            self.app.render_featured_carousel()

        self.assertEqual(carousel.index, 1)
        self.assertIn("B", mock_st.markdown.call_args[0][0])

    def test_buttons_rerun_only_the_fragment(self):
        clock = FakeClock()
        carousel = Carousel([Movie(id=1, title="A"), Movie(id=2, title="B")], clock=clock)

        mock_st = MagicMock()
        mock_st.session_state = SimpleNamespace(carousel=carousel)
        mock_st.columns.return_value = [MagicMock(), MagicMock(), MagicMock()]
        mock_st.button.side_effect = lambda label, key: key == "carousel_next"

        with patch.object(self.app, 'st', mock_st):
            self.app.render_featured_carousel()

        self.assertEqual(carousel.index, 1)
        mock_st.rerun.assert_called_once_with(scope="fragment")


if __name__ == '__main__':
    unittest.main(verbosity=2)
