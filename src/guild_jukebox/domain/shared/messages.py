"""Centralized message constants for error messages, logging, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Queue Errors
    QUEUE_FULL = "Queue is full (max {limit} tracks)"

    # Session Store Errors
    SESSION_ALREADY_EXISTS = "A session already exists for guild {guild_id}"

    # Resolver Errors
    NO_RESULTS = "No matching tracks found"

    # Player Errors
    PLAYER_CLOSED = "Player is closed"
    VOICE_NOT_CONNECTED = "Voice connection is not connected"

    # Settings Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Session Lifecycle
    SESSION_CREATED = "Created playback session for guild %s bound to channel %s"
    SESSION_DESTROYED = "Destroyed playback session for guild %s (reason: %s)"
    SESSION_DRAINING = "Queue exhausted in guild %s, teardown in %.2fs"
    SESSION_TEARDOWN_CANCELLED = "Teardown cancelled for guild %s"
    SESSION_STALE_TIMER = "Ignoring stale teardown timer for guild %s"
    SESSION_EVENT_FAILED = "Error handling player event %s in guild %s"

    # Player Events
    PLAYER_EVENT_STALE = "Ignoring stale %s event for guild %s"
    PLAYER_FATAL = "Player reported a fatal error in guild %s: %s"
    PLAYER_CLOSE_FAILED = "Error closing player for guild %s"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_REPLAYING = "Looping '%s' in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_FAILED_START = "Failed to start '%s' in guild %s: %s"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    PLAYBACK_VOLUME_SET = "Volume set to %.2f in guild %s"

    # Track Operations
    TRACK_SKIPPED = "Skipped track: %s in guild %s"
    TRACK_ENDED = "Track ended in guild %s (error: %s)"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued track '%s' at position %s in guild %s"
    QUEUE_DROPPED = "Dropped %s queued tracks in guild %s after a playback failure"

    # Loop Mode
    LOOP_TOGGLED = "Loop %s in guild %s"

    # Voice Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_CONNECT_FAILED = "Failed to connect to voice channel %s"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"
    VOICE_CLEANUP_ERROR = "Error during voice cleanup for guild %s"
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"

    # Cache Operations
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"

    # yt-dlp
    YTDLP_POT_CONFIGURED = "yt-dlp configured with PO token server at %s"
    YTDLP_NO_URL_IN_INFO_DICT = "No URL found in info dict"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info for %s"
    YTDLP_FAILED_SEARCH = "Search failed for '%s'"
    YTDLP_FAILED_INFO_TO_TRACK = "Failed to convert info dict to track"

    # Event Bus
    EVENT_HANDLER_FAILED = "Error in handler for %s: %s"

    # Shutdown
    SHUTDOWN_STARTED = "Shutting down %s playback sessions"


class UserMessages:
    """Text the command layer shows for each operation result."""

    DONE = "Done."
    FAILED = "That did not work."

    NOT_CONNECTED = "You need to be in a voice channel to use this command."
    CHANNEL_IN_USE = "The player is already being controlled from <#{channel_id}>."
    NO_ACTIVE_SESSION = "Nothing is playing right now."
    NO_SONG_IN_QUEUE = "There are no more songs in the queue."
    QUEUE_FULL = "The queue is full (max {limit} tracks)."
    TRACK_NOT_FOUND = "Could not find anything for `{query}`: {reason}"
    PLAYER_FAILURE = "Playback failed: {reason}"
    INVALID_TRANSITION = "Cannot {operation} while {state}."
    INVALID_VOLUME = "Volume must be between 0% and 200%, got {percent}%."

    NOW_PLAYING = "Now playing: **{title}**"
    ADDED_TO_QUEUE = "Added **{title}** to the queue at position {position}."
    SKIPPED = "Skipped **{skipped}**."
    SKIPPED_TO = "Skipped **{skipped}**, now playing **{next}**."
    STOPPED = "Stopped playing."
    LEFT = "Stopped playing and left the voice channel."
    PAUSED = "Paused **{title}**."
    RESUMED = "Resumed **{title}**."
    LOOP_ENABLED = "Loop enabled."
    LOOP_DISABLED = "Loop disabled."
    VOLUME_CHANGED = "Volume set to {percent}%."
