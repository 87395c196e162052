__version__ = "1.0.0"
__description__ = "sara : SqlAlchemy Resource Adapter for JSON:API"
