"""Infrastructure: persistence, provider dispatchers and rendering services."""
