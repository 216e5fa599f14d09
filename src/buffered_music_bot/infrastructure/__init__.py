"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Audio (yt-dlp resolver, downloader/transcoder pipeline, PCM buffering)
- Discord (bot, cogs, voice adapter, guards)
"""
