"""
Pytest suite for the Concert Wishlist backend.

Test categories:
- Unit tests: normalizer, matcher, validators, models, Ticketmaster client (mocked HTTP)
- Integration tests: services and ORM constraints against in-memory SQLite
- API tests: FastAPI routes over httpx with the DB dependency overridden
"""
