"""
MovieMood - Source Package

This package contains the core functionality for the movie discovery app:
- tmdb_client: TMDB requests and movie normalization
- movie_service: Local sample movie list used without TMDB credentials
- recommendation_engine: Personalized, mood, related and feedback recommendations
- movie_scoring: Weighted scoring against a user's watch history
- movie_search: Search and fuzzy matching functionality
- auth_client: Email/password sign up and sign in
- user_store: Profiles, ratings, watchlists and friends in Google Sheets
- feedback_system: Swipe feedback log and Google Sheets integration
- interaction_state: Swipe deck, carousel and filter panel state
- models, errors: Data records and exception types
- utils: Utility functions and configuration constants
"""
