"""Adapters – SQLAlchemy persistence, HTTP search engine and FastAPI surface."""
