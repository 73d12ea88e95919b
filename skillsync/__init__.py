"""AT Protocol account linking and skill sync service."""
