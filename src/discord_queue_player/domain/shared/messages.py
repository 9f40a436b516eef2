"""Centralized message constants for error messages and log templates."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Resolution
    INVALID_INPUT_TYPE = "Cannot resolve a value of type {type_name}"
    INVALID_SEARCH_RESULT = "Invalid search result type: {result_type!r}"
    INVALID_RECORD = "Invalid song record: {reason}"
    UNSUPPORTED_URL = "Not supported URL: {url}"
    INPUTS_NOT_A_LIST = "Custom playlist inputs must be a list of songs, search results or URLs"

    # Playlist construction
    EMPTY_PLAYLIST = "No valid song in the playlist"
    EMPTY_PLAYLIST_AGE_FILTERED = (
        "No valid song in the playlist.\n"
        "Age-restricted songs were filtered because the channel is not marked NSFW."
    )
    EMPTY_INPUT = "No song, search result or URL was given"
    NO_VALID_ENTRIES = "None of the {count} entries could be resolved"

    # Voice / playback
    JOIN_VOICE_CHANNEL_FAILED = "Cannot join the voice channel in guild {guild_id}"
    NO_STREAM_URL = "Song '{name}' has no stream URL"
    NO_NATIVE_INFO = "Song '{name}' has no metadata to stream from"
    NOT_CONNECTED = "Queue for guild {guild_id} has no voice connection"

    # Queue operations
    QUEUE_NOT_FOUND = "There is no queue in guild {guild_id}"
    NO_UP_NEXT = "There is no up next song"
    NO_PREVIOUS = "There is no previous song in this queue"
    PREVIOUS_DISABLED = "Previous songs are not kept in history (save_previous_songs is off)"
    NO_RELATED = "Cannot find any related song"
    UNKNOWN_FILTER = "Unknown filter: {name}"
    INVALID_VOLUME = "Volume must be between 0 and 200"
    INVALID_JUMP = "Invalid song position: {position}"
    INVALID_SEEK = "Seek position must be non-negative"

    # Providers
    PROVIDER_NO_RESULT = "No information returned for {url}"
    PROVIDER_NO_STREAM = "No playable stream found for {url}"

    # Configuration
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    FFMPEG_NOT_FOUND = "FFmpeg executable '{executable}' was not found on PATH"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters.
    """

    # Resolution
    RESOLVE_NATIVE = "Resolving native URL %s"
    RESOLVE_PLUGIN = "Resolving %s with extractor %s"
    RESOLVE_SEARCH = "Resolving search phrase '%s'"
    RESOLVE_ENTRY_FAILED = "Dropping custom playlist entry %r: %s"
    PLAYLIST_FILTERED = "Dropped %d unavailable entries from playlist %s"
    EXTRACTOR_REGISTERED = "Registered extractor plugin: %s"

    # Search
    SEARCH_FAILED = "Search failed for '%s': %s"
    SEARCH_NO_RESULT = "No search result for '%s'"
    SEARCH_CANCELLED = "Search for '%s' cancelled"
    SEARCH_PICKED = "Picked result %d for '%s'"

    # Queue lifecycle
    QUEUE_CREATED = "Created queue for guild %s with %d songs"
    QUEUE_DELETED = "Deleted queue for guild %s"
    QUEUE_SONGS_ADDED = "Added %d songs to queue in guild %s"
    QUEUE_AGE_FILTERED = "Filtered %d age-restricted songs for guild %s"
    QUEUE_FINISHED = "Queue finished in guild %s"
    QUEUE_STOPPED = "Stopped queue in guild %s"
    QUEUE_STOP_FAILED = "Graceful stop failed in guild %s, destroying queue"

    # Voice
    VOICE_JOINING = "Joining voice channel for guild %s (retry=%s)"
    VOICE_JOIN_FAILED = "Failed to join voice channel for guild %s: %r"
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_LEAVE_FAILED = "Failed to leave voice channel in guild %s: %r"
    VOICE_CONNECT_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_CALLBACK_ERROR = "Error in voice callback for guild %s"

    # Playback
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_ENDED = "Playback ended in guild %s (error: %s)"
    PLAYBACK_STALE_CALLBACK = "Ignoring playback callback for replaced queue in guild %s"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    SONG_FINISHED = "Song finished: '%s' in guild %s"
    SONG_SKIPPED = "Skipping to next song in guild %s"
    SONG_PREVIOUS = "Returning to previous song in guild %s"
    RELATED_ADDED = "Autoplay added '%s' in guild %s"
    NO_RELATED = "No related song for guild %s"
    STREAM_RELEASE_FAILED = "Error releasing stream: %r"

    # yt-dlp
    YTDLP_FAILED_EXTRACT = "yt-dlp failed to extract %s"
    YTDLP_FAILED_SEARCH = "yt-dlp search failed for '%s'"
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"

    # FFmpeg
    FFMPEG_STREAM_CREATED = "Created FFmpeg stream (seek=%s, args=%s)"
    FFMPEG_READ_FAILED = "FFmpeg stream read failed: %r"
    FFMPEG_CLEANUP_ERROR = "Error cleaning up FFmpeg source: %r"

    # Events
    EVENT_HANDLER_ERROR = "Error in handler for %s: %s"

    # Bot lifecycle
    BOT_STARTING = "Starting queue player bot in {environment} mode"
    BOT_SETUP = "Running bot setup hook"
    BOT_PLAYER_CONFIG = "Player: search_songs=%d, save_previous_songs=%s, leave_on_finish=%s, %d filters"
    BOT_GUILD_REMOVED = "Removed from guild %s, stopping its queue"
    BOT_READY = "Logged in as %s"
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down"
    BOT_FATAL_ERROR = "Fatal error: %s"
