"""
MovieMood - movie discovery and recommendation app
Home, swipe-to-discover, movie details, watchlist, profile and social pages
"""

import logging
import os
import sys

import streamlit as st

# =============================================================================
# IMPORTS AND SETUP
# =============================================================================

# Add src directory to path for imports
current_dir = os.path.dirname(os.path.abspath(__file__))
src_dir = os.path.join(current_dir, 'src')

if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from auth_client import AuthClient
from errors import (
    AuthError, InvalidPreferenceError, InvalidRatingError, MovieMoodError,
    MovieNotFoundError, StoreError, TMDBError
)
from feedback_system import (
    get_or_create_numeric_session_id,
    initialize_feedback_csv,
    load_session_feedback,
    record_feedback_to_sheet,
    save_feedback
)
from interaction_state import Carousel, FilterState, SwipeCard
from models import Preferences
from movie_scoring import rank_with_history
from movie_search import configure_tmdb, fuzzy_match_titles, fuzzy_search_movies
from recommendation_engine import create_engine
from user_store import UserStore
from utils import (
    DECADES, GENRES, MOOD_LABELS, MOODS, PREFERENCE_DECADES, PREFERENCE_GENRES,
    PREFERENCE_MOODS, QUICK_FILTER_LABELS, QUICK_FILTERS, RATING_FILTERS, SORT_OPTIONS,
    format_runtime, get_image_url, relative_time
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger("main_app")

PAGES = ["home", "discover", "movie", "login", "signup", "preferences", "profile", "watchlist", "social"]
NAV_PAGES = [
    ("home", "🏠 Home"),
    ("discover", "🎲 Discover"),
    ("watchlist", "📌 Watchlist"),
    ("social", "👥 Social"),
    ("profile", "👤 Profile")
]
SIGNED_IN_PAGES = {"preferences", "profile", "watchlist", "social"}

# The featured fragment polls this often so tick() sees the 8 s interval pass
CAROUSEL_INTERVAL = 8.0
CAROUSEL_POLL_SECONDS = 1

# =============================================================================
# SESSION STATE MANAGEMENT
# =============================================================================

def initialize_session_state():
    """Initialize all required session state variables."""

    # Services
    if "engine" not in st.session_state:
        st.session_state.engine = create_engine()

    if "store" not in st.session_state:
        try:
            st.session_state.store = UserStore()
        except StoreError as e:
            logger.warning("User store unavailable: %s", e)
            st.session_state.store = None

    if "auth" not in st.session_state:
        try:
            st.session_state.auth = AuthClient(store=st.session_state.store)
        except AuthError as e:
            logger.warning("Auth unavailable: %s", e)
            st.session_state.auth = None

    # Signed-in user
    if "user" not in st.session_state:
        st.session_state.user = None

    if "preferences" not in st.session_state:
        st.session_state.preferences = Preferences()

    # Discover page
    if "deck" not in st.session_state:
        st.session_state.deck = []

    if "deck_index" not in st.session_state:
        st.session_state.deck_index = 0

    if "selected_mood" not in st.session_state:
        st.session_state.selected_mood = None

    if "swipe_card" not in st.session_state:
        st.session_state.swipe_card = SwipeCard(on_like=on_like, on_dislike=on_dislike)

    # Home page
    if "filters" not in st.session_state:
        st.session_state.filters = FilterState()

    if "home_sections" not in st.session_state:
        st.session_state.home_sections = None

    if "carousel" not in st.session_state:
        st.session_state.carousel = None

    # Session ID for feedback
    if "numeric_session_id" not in st.session_state:
        initialize_feedback_csv()
        numeric_id, session_id = get_or_create_numeric_session_id()
        st.session_state.numeric_session_id = numeric_id
        liked, disliked = load_session_feedback(session_id)
        st.session_state.liked = liked
        st.session_state.disliked = disliked

    if "tmdb_search_ready" not in st.session_state:
        st.session_state.tmdb_search_ready = (
            not st.session_state.engine.uses_local_data and configure_tmdb()
        )

# =============================================================================
# UI STYLING
# =============================================================================

def inject_custom_css():
    """Inject custom CSS for cards, carousel and swipe deck."""
    st.markdown("""
    <style>
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}

    .app-title {
        font-size: 2.2rem;
        font-weight: 800;
        margin-bottom: 0.5rem;
    }

    .featured {
        position: relative;
        border-radius: 12px;
        overflow: hidden;
        min-height: 320px;
        background-size: cover;
        background-position: center;
        display: flex;
        align-items: flex-end;
    }

    .featured-text {
        width: 100%;
        padding: 1.5rem;
        background: linear-gradient(transparent, rgba(0, 0, 0, 0.85));
        color: white;
    }

    .movie-meta {
        color: #888;
        font-size: 0.9rem;
    }

    .feed-item {
        padding: 0.75rem 0;
        border-bottom: 1px solid #eee;
    }
    </style>
    """, unsafe_allow_html=True)

# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def go_to(page, **params):
    """Switch page via the query string and rerun."""
    st.query_params.clear()
    st.query_params["page"] = page
    for key, value in params.items():
        st.query_params[key] = str(value)
    st.rerun()


def current_page():
    page = st.query_params.get("page", "home")
    if page not in PAGES:
        return "home"
    if page in SIGNED_IN_PAGES and st.session_state.user is None:
        return "login"
    return page


def current_uid():
    user = st.session_state.user
    return user.uid if user else None


def on_like(movie):
    st.session_state.liked.append(movie.id)
    record_swipe(movie, "like")


def on_dislike(movie):
    st.session_state.disliked.append(movie.id)
    record_swipe(movie, "dislike")


def record_swipe(movie, decision):
    """Log a swipe locally and to Sheets; Sheets failures only warn."""
    numeric_id, session_id = get_or_create_numeric_session_id()
    source = f"mood:{st.session_state.selected_mood}" if st.session_state.selected_mood else "swipe"
    save_feedback(numeric_id, session_id, current_uid(), movie, decision, source)
    if not record_feedback_to_sheet(numeric_id, session_id, current_uid(), movie, decision, source):
        logger.info("Swipe on %s kept in the local log only", movie.id)


def refresh_deck():
    """Rebuild the swipe deck from the selected mood or the swipe history."""
    engine = st.session_state.engine
    try:
        if st.session_state.selected_mood:
            deck = engine.get_mood_based_recommendations(st.session_state.selected_mood)
        else:
            deck = engine.update_recommendations_based_on_feedback(
                current_uid(),
                st.session_state.liked,
                st.session_state.disliked,
                st.session_state.preferences
            )
    except MovieMoodError as e:
        logger.error("Could not load recommendations: %s", e)
        st.error("Couldn't load recommendations right now. Please try again.")
        return
    seen = set(st.session_state.liked) | set(st.session_state.disliked)
    st.session_state.deck = [m for m in deck if m.id not in seen]
    st.session_state.deck_index = 0
    st.session_state.swipe_card.reset()


def add_to_watchlist(movie):
    store = st.session_state.store
    if store is None or st.session_state.user is None:
        st.info("Sign in to save movies to your watchlist.")
        return
    try:
        store.add_to_watchlist(current_uid(), movie)
        st.success(f"Added {movie.title} to your watchlist")
    except StoreError as e:
        logger.error("Watchlist add failed: %s", e)
        st.error("Couldn't update your watchlist.")


def rank_for_user(movies):
    """Order recommendations by the signed-in user's ratings and watchlist."""
    store = st.session_state.store
    if store is None or st.session_state.user is None or not movies:
        return movies
    try:
        ratings = store.get_ratings(current_uid())
        watchlist = store.get_watchlist(current_uid())
    except StoreError as e:
        logger.warning("Could not load history for ranking: %s", e)
        return movies
    return rank_with_history(movies, st.session_state.preferences, ratings, watchlist) or movies


def load_home_sections():
    engine = st.session_state.engine
    sections = engine.get_home_sections(st.session_state.preferences)
    sections["recommended"] = rank_for_user(sections.get("recommended", []))
    st.session_state.home_sections = sections
    featured = [m for m in sections.get("trending", []) if m.backdrop_path] or sections.get("trending", [])
    st.session_state.carousel = Carousel(featured[:5], interval=CAROUSEL_INTERVAL)

# =============================================================================
# UI COMPONENTS
# =============================================================================

def render_nav():
    cols = st.columns(len(NAV_PAGES) + 1)
    for col, (page, label) in zip(cols, NAV_PAGES):
        with col:
            if st.button(label, key=f"nav_{page}", use_container_width=True):
                go_to(page)
    with cols[-1]:
        if st.session_state.user is None:
            if st.button("🔑 Sign in", key="nav_login", use_container_width=True):
                go_to("login")
        else:
            st.caption(st.session_state.user.display_name or st.session_state.user.email)


def render_movie_card(movie, key_prefix, show_watchlist=True):
    poster_url = get_image_url(movie.poster_path, "medium")
    if poster_url:
        st.image(poster_url, use_container_width=True)
    else:
        st.markdown("🎬 *No poster*")
    year = f" ({movie.year})" if movie.year else ""
    st.markdown(f"**{movie.title}**{year}")
    st.markdown(f'<div class="movie-meta">⭐ {movie.vote_average:.1f}</div>', unsafe_allow_html=True)
    if st.button("ℹ️ Details", key=f"{key_prefix}_details_{movie.id}"):
        go_to("movie", id=movie.id)
    if show_watchlist and st.button("📌 Save", key=f"{key_prefix}_save_{movie.id}"):
        add_to_watchlist(movie)


def render_movie_row(title, movies, key_prefix):
    st.markdown(f"### {title}")
    if not movies:
        st.caption("Nothing to show right now.")
        return
    cols = st.columns(4)
    for idx, movie in enumerate(movies[:4]):
        with cols[idx]:
            render_movie_card(movie, key_prefix)


@st.fragment(run_every=CAROUSEL_POLL_SECONDS)
def render_featured_carousel():
    carousel = st.session_state.carousel
    if carousel is None or carousel.current is None:
        return
    carousel.tick()
    movie = carousel.current
    backdrop = get_image_url(movie.backdrop_path, "original") or ""
    st.markdown(f'''
    <div class="featured" style="background-image: url('{backdrop}')">
        <div class="featured-text">
            <h2>{movie.title}</h2>
            <p>{movie.overview[:220]}</p>
        </div>
    </div>
    ''', unsafe_allow_html=True)

    col1, col2, col3 = st.columns([1, 6, 1])
    with col1:
        if st.button("◀", key="carousel_prev"):
            carousel.previous()
            st.rerun(scope="fragment")
    with col2:
        st.caption(" ".join("●" if i == carousel.index else "○" for i in range(len(carousel.items))))
    with col3:
        if st.button("▶", key="carousel_next"):
            carousel.next()
            st.rerun(scope="fragment")


def render_filter_panel():
    filters = st.session_state.filters
    with st.expander("🎛️ Filters", expanded=filters.has_active_filters):
        col1, col2, col3 = st.columns(3)
        with col1:
            genre = st.selectbox("Genre", ["Any"] + GENRES,
                                 index=(GENRES.index(filters.genre) + 1) if filters.genre in GENRES else 0)
            if (genre if genre != "Any" else None) != filters.genre:
                filters.select_genre(genre if genre != "Any" else filters.genre)
        with col2:
            decade = st.selectbox("Decade", ["Any"] + DECADES,
                                  index=(DECADES.index(filters.decade) + 1) if filters.decade in DECADES else 0)
            if (decade if decade != "Any" else None) != filters.decade:
                filters.select_decade(decade if decade != "Any" else filters.decade)
        with col3:
            mood = st.selectbox("Mood", ["Any"] + MOODS,
                                index=(MOODS.index(filters.mood) + 1) if filters.mood in MOODS else 0)
            if (mood if mood != "Any" else None) != filters.mood:
                filters.select_mood(mood if mood != "Any" else filters.mood)

        col4, col5 = st.columns(2)
        with col4:
            rating = st.select_slider("Minimum rating", options=RATING_FILTERS, value="Any")
            filters.set_min_rating(rating)
        with col5:
            sort_keys = list(SORT_OPTIONS)
            sort_by = st.selectbox("Sort by", sort_keys, format_func=SORT_OPTIONS.get)
            filters.sort_by = sort_by if sort_by != "popularity.desc" else None

        quick_cols = st.columns(len(QUICK_FILTERS))
        for col, name in zip(quick_cols, QUICK_FILTERS):
            with col:
                active = name in filters.quick_filters
                label = QUICK_FILTER_LABELS[name]
                label = f"✅ {label}" if active else label
                if st.button(label, key=f"quick_{name}"):
                    filters.toggle_quick_filter(name)
                    st.rerun()

        if filters.has_active_filters and st.button("Clear filters", key="clear_filters"):
            filters.clear()
            st.rerun()

    if filters.has_active_filters:
        try:
            results = st.session_state.engine.discover(filters.to_filter_bag(), limit=8)
        except TMDBError as e:
            logger.error("Filter query failed: %s", e)
            st.error("Couldn't apply those filters right now.")
            return
        render_movie_row("Filtered results", results, "filtered")


def render_home():
    if st.session_state.home_sections is None:
        with st.spinner("🎬 Loading movies..."):
            load_home_sections()
    sections = st.session_state.home_sections

    render_featured_carousel()
    render_filter_panel()
    render_movie_row("🔥 Trending", sections.get("trending", []), "trending")
    render_movie_row("🏆 Top Rated", sections.get("top_rated", []), "top")
    render_movie_row("🆕 New Releases", sections.get("new_releases", []), "new")
    render_movie_row("🎯 Recommended for You", sections.get("recommended", []), "rec")


def render_search():
    query = st.text_input("Search for a movie", key="search_query")
    if not query or len(query.strip()) < 2:
        return
    engine = st.session_state.engine
    try:
        results = engine.search(query, limit=8)
    except TMDBError:
        st.error("Search is unavailable right now.")
        return

    if len(results) < 3:
        if st.session_state.tmdb_search_ready:
            suggestions = fuzzy_search_movies(query, max_results=5)
            known = {m.id for m in results}
            extra = [s for s in suggestions if s["id"] not in known]
            if extra:
                st.write("**Did you mean one of these?**")
                for s in extra:
                    year = f" ({s['year']})" if s["year"] else ""
                    if st.button(f"{s['title']}{year} · {s['similarity']:.0%} match", key=f"fuzzy_{s['id']}"):
                        go_to("movie", id=s["id"])
        else:
            results = results + [m for m in fuzzy_match_titles(query, engine.local_service.get_all_movies())
                                 if m not in results]

    render_movie_row(f"Results for '{query}'", results, "search")


def render_mood_selector():
    labels = ["For you"] + [MOOD_LABELS[m] for m in MOOD_LABELS]
    ids = [None] + list(MOOD_LABELS)
    current = ids.index(st.session_state.selected_mood) if st.session_state.selected_mood in ids else 0
    choice = st.radio("What are you in the mood for?", labels, index=current, horizontal=True)
    mood = ids[labels.index(choice)]
    if mood != st.session_state.selected_mood:
        st.session_state.selected_mood = mood
        refresh_deck()
        st.rerun()


def render_swipe_deck():
    if not st.session_state.deck:
        with st.spinner("🎯 Finding movies for you..."):
            refresh_deck()

    deck = st.session_state.deck
    index = st.session_state.deck_index
    if index >= len(deck):
        st.info("You've seen every card in this stack.")
        if st.button("🔄 More recommendations", key="more_recs"):
            refresh_deck()
            st.rerun()
        return

    movie = deck[index]
    card = st.session_state.swipe_card
    col_left, col_card, col_right = st.columns([1, 3, 1])
    with col_card:
        poster_url = get_image_url(movie.poster_path, "large")
        if poster_url:
            st.image(poster_url, use_container_width=True)
        year = f" ({movie.year})" if movie.year else ""
        st.markdown(f"## {movie.title}{year}")
        st.markdown(f'<div class="movie-meta">⭐ {movie.vote_average:.1f} · {", ".join(movie.genres)}</div>',
                    unsafe_allow_html=True)
        if movie.director:
            st.caption(f"Directed by {movie.director}")
        st.write(movie.overview)

        b1, b2, b3, b4 = st.columns(4)
        with b1:
            if st.button("👎 Nope", key=f"dislike_{movie.id}"):
                card.fling("left", movie)
        with b2:
            if st.button("📌 Save", key=f"save_{movie.id}"):
                add_to_watchlist(movie)
        with b3:
            if st.button("ℹ️ Details", key=f"info_{movie.id}"):
                go_to("movie", id=movie.id)
        with b4:
            if st.button("❤️ Like", key=f"like_{movie.id}"):
                card.fling("right", movie)

    if card.committed:
        card.reset()
        st.session_state.deck_index += 1
        if st.session_state.deck_index >= len(deck) and not st.session_state.selected_mood:
            refresh_deck()
        st.rerun()


def render_discover():
    st.markdown("## 🎲 Discover")
    render_search()
    render_mood_selector()
    render_swipe_deck()


def render_movie_detail():
    movie_id = st.query_params.get("id")
    engine = st.session_state.engine
    try:
        movie = engine.get_movie(movie_id)
    except MovieNotFoundError:
        st.error("Movie not found")
        if st.button("← Back", key="detail_back_missing"):
            go_to("home")
        return
    except TMDBError:
        st.error("Couldn't load this movie right now.")
        return

    if st.button("← Back", key="detail_back"):
        go_to("home")

    backdrop = get_image_url(movie.backdrop_path, "large")
    if backdrop:
        st.image(backdrop, use_container_width=True)

    col1, col2 = st.columns([1, 2])
    with col1:
        poster_url = get_image_url(movie.poster_path, "medium")
        if poster_url:
            st.image(poster_url, use_container_width=True)
    with col2:
        year = f" ({movie.year})" if movie.year else ""
        st.markdown(f"# {movie.title}{year}")
        meta = [f"⭐ {movie.vote_average:.1f}", format_runtime(movie.runtime)]
        if movie.certification:
            meta.append(movie.certification)
        st.markdown(f'<div class="movie-meta">{" · ".join(meta)}</div>', unsafe_allow_html=True)
        st.write(", ".join(movie.genres))
        st.write(movie.overview)
        if movie.director:
            st.markdown(f"**Director:** {movie.director}")
        if movie.cast:
            st.markdown(f"**Cast:** {', '.join(movie.cast)}")
        if movie.trailer_url:
            st.video(movie.trailer_url)
        if st.button("📌 Add to watchlist", key="detail_save"):
            add_to_watchlist(movie)

    try:
        related = engine.get_related_recommendations(movie.id, limit=4)
    except MovieMoodError as e:
        logger.warning("Related movies unavailable for %s: %s", movie.id, e)
        related = []
    render_movie_row("You might also like", related, "related")


def render_login():
    st.markdown("## 🔑 Sign in")
    auth = st.session_state.auth
    if auth is None:
        st.warning("Accounts are not configured for this deployment.")
        return

    with st.form("login_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in")
    if submitted:
        try:
            session = auth.sign_in(email, password)
        except (AuthError, StoreError) as e:
            st.error(str(e))
        else:
            sign_in_user(session)
            go_to("home")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Forgot password?", key="forgot"):
            if not email:
                st.warning("Enter your email first.")
            else:
                try:
                    auth.send_password_reset(email)
                    st.success("Password reset email sent.")
                except AuthError as e:
                    st.error(str(e))
    with col2:
        if st.button("Create an account", key="to_signup"):
            go_to("signup")


def render_signup():
    st.markdown("## ✨ Create your account")
    auth = st.session_state.auth
    if auth is None:
        st.warning("Accounts are not configured for this deployment.")
        return

    with st.form("signup_form"):
        display_name = st.text_input("Name")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Sign up")
    if submitted:
        if password != confirm:
            st.error("Passwords do not match.")
            return
        try:
            session = auth.sign_up(email, password, display_name)
        except (AuthError, StoreError) as e:
            st.error(str(e))
        else:
            sign_in_user(session)
            go_to("preferences")


def sign_in_user(session):
    st.session_state.user = session
    store = st.session_state.store
    if store is None:
        return
    try:
        st.session_state.preferences = store.get_profile(session.uid).preferences
    except StoreError as e:
        logger.warning("Could not load preferences for %s: %s", session.uid, e)
    st.session_state.home_sections = None


def render_preferences():
    st.markdown("## 🎯 Your taste")
    prefs = st.session_state.preferences
    with st.form("preferences_form"):
        genres = st.multiselect("Favourite genres", PREFERENCE_GENRES, default=sorted(prefs.genres))
        decades = st.multiselect("Favourite decades", PREFERENCE_DECADES, default=sorted(prefs.decades))
        moods = st.multiselect("Moods you enjoy", PREFERENCE_MOODS, default=sorted(prefs.moods))
        submitted = st.form_submit_button("Save preferences")
    if submitted:
        new_prefs = Preferences(set(genres), set(decades), set(moods))
        try:
            if st.session_state.store is not None:
                st.session_state.store.update_preferences(current_uid(), new_prefs)
            st.session_state.preferences = new_prefs.validate()
        except (InvalidPreferenceError, StoreError) as e:
            st.error(str(e))
            return
        st.session_state.home_sections = None
        st.session_state.deck = []
        st.success("Preferences saved")
        go_to("home")


def render_profile():
    user = st.session_state.user
    st.markdown(f"## 👤 {user.display_name or user.email}")
    st.caption(user.email)
    prefs = st.session_state.preferences
    st.markdown(f"**Genres:** {', '.join(sorted(prefs.genres)) or 'None'}")
    st.markdown(f"**Decades:** {', '.join(sorted(prefs.decades)) or 'None'}")
    st.markdown(f"**Moods:** {', '.join(sorted(prefs.moods)) or 'None'}")
    st.markdown(f"**Swipes this session:** {len(st.session_state.liked)} likes, "
                f"{len(st.session_state.disliked)} passes")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("✏️ Edit preferences", key="edit_prefs"):
            go_to("preferences")
    with col2:
        if st.button("🚪 Sign out", key="sign_out"):
            if st.session_state.auth is not None:
                st.session_state.auth.sign_out()
            st.session_state.user = None
            st.session_state.preferences = Preferences()
            st.session_state.home_sections = None
            go_to("home")


def render_watchlist():
    st.markdown("## 📌 Watchlist")
    store = st.session_state.store
    if store is None:
        st.warning("Watchlists are not available right now.")
        return
    try:
        entries = store.get_watchlist(current_uid())
        ratings = {r.movie_id: r.rating for r in store.get_ratings(current_uid())}
    except StoreError as e:
        logger.error("Watchlist load failed: %s", e)
        st.error("Couldn't load your watchlist.")
        return

    if not entries:
        st.info("Your watchlist is empty. Save movies from Discover or Home.")
        return

    for entry in entries:
        movie = entry.movie
        col1, col2, col3 = st.columns([1, 3, 2])
        with col1:
            poster_url = get_image_url(movie.get("poster_path"), "small")
            if poster_url:
                st.image(poster_url)
        with col2:
            st.markdown(f"**{movie.get('title', '')}**")
            st.caption(f"Added {relative_time(entry.added_at)}")
            if st.button("Details", key=f"wl_details_{entry.movie_id}"):
                go_to("movie", id=entry.movie_id)
        with col3:
            rating = st.select_slider("Your rating", options=[1, 2, 3, 4, 5],
                                      value=ratings.get(entry.movie_id, 3), key=f"wl_rating_{entry.movie_id}")
            if st.button("⭐ Rate", key=f"wl_rate_{entry.movie_id}"):
                try:
                    store.upsert_rating(current_uid(), entry.movie_id, rating, movie=movie)
                    st.success("Rating saved")
                except (InvalidRatingError, StoreError) as e:
                    st.error(str(e))
            if st.button("🗑️ Remove", key=f"wl_remove_{entry.movie_id}"):
                try:
                    store.remove_from_watchlist(current_uid(), entry.movie_id)
                except StoreError as e:
                    st.error(str(e))
                st.rerun()


def render_social():
    st.markdown("## 👥 Friends")
    store = st.session_state.store
    if store is None:
        st.warning("Social features are not available right now.")
        return

    with st.form("add_friend_form"):
        friend_uid = st.text_input("Add a friend by user id")
        submitted = st.form_submit_button("Add friend")
    if submitted and friend_uid:
        try:
            store.add_friend(current_uid(), friend_uid.strip())
            st.success("Friend added")
        except (StoreError, ValueError) as e:
            st.error(str(e))
    st.caption(f"Your user id: {current_uid()}")

    try:
        feed = store.get_social_feed(current_uid())
    except StoreError as e:
        logger.error("Social feed load failed: %s", e)
        st.error("Couldn't load your friends' activity.")
        return

    if not feed:
        st.info("No activity from friends yet.")
        return

    for activity in feed:
        if activity.type == "rating":
            action = f"rated **{activity.movie_title}** {'⭐' * activity.rating}"
        else:
            action = f"saved **{activity.movie_title}** to their watchlist"
        st.markdown(f'<div class="feed-item">{activity.display_name} {action} '
                    f'<span class="movie-meta">· {relative_time(activity.timestamp)}</span></div>',
                    unsafe_allow_html=True)
        if activity.comment:
            st.caption(f"“{activity.comment}”")

# =============================================================================
# MAIN APPLICATION
# =============================================================================

PAGE_RENDERERS = {
    "home": render_home,
    "discover": render_discover,
    "movie": render_movie_detail,
    "login": render_login,
    "signup": render_signup,
    "preferences": render_preferences,
    "profile": render_profile,
    "watchlist": render_watchlist,
    "social": render_social
}


def main():
    """Main application function."""
    st.set_page_config(
        page_title="MovieMood",
        page_icon="🎬",
        layout="wide",
        initial_sidebar_state="collapsed"
    )

    initialize_session_state()
    inject_custom_css()

    st.markdown('<div class="app-title">🎬 MovieMood</div>', unsafe_allow_html=True)
    if st.session_state.engine.uses_local_data:
        st.caption("Showing sample movies. Add a TMDB key to browse the full catalogue.")
    render_nav()

    PAGE_RENDERERS[current_page()]()


if __name__ == "__main__":
    main()
