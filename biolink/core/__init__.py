"""Configuration, Backend API client, sessions and observability."""
