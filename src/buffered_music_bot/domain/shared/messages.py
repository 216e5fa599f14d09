"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Song Validation Errors
    EMPTY_SONG_TITLE = "Song title cannot be empty"
    EMPTY_SONG_URL = "Song URL cannot be empty"
    EMPTY_QUERY = "Query cannot be empty"
    EMPTY_STREAM_URL = "Stream URL cannot be empty"

    # Settings Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    DISCORD_CONFIG_MISSING = "Missing required configuration: {names}"

    # Pipeline Errors
    PROCESS_SPAWN_FAILED = "Failed to spawn {process}: {error}"
    DOWNLOADER_EXITED_EARLY = "Downloader exited with code {returncode} before producing any data"
    TRANSCODER_NO_OUTPUT = "Transcoder exited without producing audio"
    PIPELINE_TASK_CRASHED = "{task} crashed: {error}"
    PIPELINE_ALREADY_STARTED = "Pipeline was already started"

    # Resolution Errors
    NO_URL_IN_INFO_DICT = "No URL found in info dict"
    RESOLUTION_FAILED = "Resolution failed: {error}"

    # Session Registry Errors
    SESSION_ALREADY_EXISTS = "A session already exists for guild {guild_id}"

    # Playback Errors
    VOICE_PLAY_REFUSED = "Voice client refused to play"

    # Container / Bot Errors
    CONTAINER_NOT_FOUND = "Container not found on bot instance"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Pipeline Lifecycle
    PIPELINE_SPAWNED = "Spawned downloader (pid=%s) and transcoder (pid=%s) for %s"
    PIPELINE_BUFFERED = "Buffered %d bytes for %s"
    PIPELINE_FAILED = "Pipeline failed for %s: %s"
    PIPELINE_CLOSED = "Closed pipeline for %s"
    PIPELINE_STDERR = "[%s] %s"
    PIPELINE_PUMP_BROKEN = "Transcoder input closed early for %s"
    PIPELINE_DOWNLOADER_EXIT = "Downloader for %s exited with code %s after %d bytes"
    PIPELINE_OUTPUT_EOF = "Transcoder output ended for %s after %d bytes"
    PIPELINE_KILL_TIMEOUT = "%s (pid=%s) did not exit within %.1fs after kill"
    PIPELINE_LATE_ERROR = "Ignoring %s error after buffering for %s: %s"
    PIPELINE_TASK_CRASHED = "Pipeline task %s crashed for %s"
    PCM_UNDERRUN = "PCM buffer underrun, emitting silence (%d so far)"

    # Cache Operations
    CACHE_HIT = "Cache hit for '%s'"
    CACHE_EXPIRED_PRUNED = "Pruned %d expired cache entries"

    # Resolution
    YTDLP_FAILED_RESOLVE = "Failed to resolve %r"
    YTDLP_NO_RESULTS = "No results for %r"

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_MOVE_TIMEOUT = "Timeout moving to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_NOT_CONNECTED = "Not connected to voice in guild %s"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect from voice in guild %s"
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"
    VOICE_PLAY_FAILED = "Voice client refused to play in guild %s: %r"
    VOICE_AFTER_DROPPED = "Event loop closed; dropping playback callback for guild %s"

    # Playback Operations
    PLAYBACK_BUFFERING = "Buffering '%s' in guild %s"
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_FINISHED = "Finished '%s' in guild %s (%s)"
    PLAYBACK_START_FAILED = "Could not start '%s' in guild %s: %s"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    PLAYBACK_SKIPPED = "Skipped '%s' in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s (%d songs discarded)"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_DRIVER_CRASHED = "Playback driver crashed in guild %s"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued '%s' at position %s in guild %s"
    QUEUE_EXHAUSTED = "Queue exhausted in guild %s, leaving voice"

    # Session Operations
    SESSION_CREATED = "Created session for guild %s in channel %s"
    SESSION_REMOVED = "Removed session for guild %s"
    SESSION_SHUTDOWN = "Shutting down %d active sessions"

    # Application Lifecycle
    BOT_STARTING = "Starting buffered music bot in {environment} mode"
    BOT_CONFIG_MISSING = "Missing required configuration: %s"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown did not finish within %.1fs"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_UNHANDLED_LOOP_ERROR = "Unhandled error in event loop: %s"
    BOT_UNHANDLED_THREAD_ERROR = "Unhandled error in thread %s"

    # Bot Cog Management
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_COGS_LOADED_SUMMARY = "Cogs loaded: %s success, %s failed"

    # Bot Command Sync
    BOT_SYNCED_GUILD = "Synced %s commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync to guild %s: %s"

    # Bot Error Handling
    BOT_SLASH_COMMAND_ERROR = "Slash command error in '%s': %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"

    # Cog Operations
    COG_PLAY_REQUEST = "Play request '%s' from %s in guild %s"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    Keep them concise, friendly, and include appropriate emoji.
    """

    # Playback Messages
    NOW_PLAYING = "🎵 Now playing: **{title}**"
    ADDED_TO_QUEUE = "✅ Added **{title}** to the queue!"
    ACTION_SKIPPED = "⏭️ Skipped: **{title}**"
    ACTION_STOPPED = "⏹️ Stopped playback and cleared the queue."
    ACTION_PAUSED = "⏸️ Paused playback."
    ACTION_RESUMED = "▶️ Resumed playback."

    # Error Messages
    ERROR_NO_RESULTS = "❌ No results found."
    ERROR_RESOLVE_FAILED = "❌ Failed to resolve the query."
    ERROR_MUST_BE_IN_VOICE = "❌ You must be in a voice channel."
    ERROR_COULD_NOT_JOIN_VOICE = "❌ I couldn't join your voice channel."
    ERROR_COMMAND_FAILED_SEE_LOGS = "❌ Command failed. See logs."
    ERROR_OCCURRED = "An error occurred: {error}"

    # State Messages
    STATE_NOTHING_PLAYING = "Nothing is playing."
    STATE_NOTHING_PAUSED = "Nothing is paused."
    STATE_QUEUE_EMPTY = "Queue is empty."
    STATE_SERVER_ONLY = "This command can only be used in a server."

    # Queue Embed
    EMBED_QUEUE = "📋 Queue ({total} songs)"
    EMBED_QUEUE_NOW_PLAYING = "Now playing"
    EMBED_QUEUE_UP_NEXT = "Up next"
    EMBED_QUEUE_PAUSED_SUFFIX = " (paused)"
    EMBED_QUEUE_MORE = "…and {count} more"

    # General Commands
    SUCCESS_PONG = "Pong!"
    SUCCESS_HELLO = "Hello 👋"
