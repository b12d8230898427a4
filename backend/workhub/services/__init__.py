"""Business services operating on a SQLAlchemy `Session`."""
