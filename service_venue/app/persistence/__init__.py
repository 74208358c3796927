"""
Persistence package for the Venue service (PostgreSQL via asyncpg).
"""
