"""
Database configuration for the embedded SQLite store.
Centralized configuration to allow easy changes for Docker/deployment.
"""
import os


class DatabaseConfig:
    """Database configuration class with environment variable support."""

    DB_PATH: str = os.getenv("KARTMAN_DB_PATH", "data.db")

    @classmethod
    def get_database_path(cls) -> str:
        """
        Get the SQLite database file path.
        Supports ":memory:" for throwaway databases.
        """
        return cls.DB_PATH
