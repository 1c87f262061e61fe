"""
OpenRank API - project discovery and developer rankings.

Provides a FastAPI backend that proxies GitHub search, serves the stored
project catalogue and developer leaderboard from Supabase, and tracks visits.
"""
