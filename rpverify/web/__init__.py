"""Flask integration and demo relying party."""
