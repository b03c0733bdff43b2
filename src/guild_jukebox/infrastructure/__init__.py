"""Infrastructure layer: adapters for discord.py and yt-dlp."""
