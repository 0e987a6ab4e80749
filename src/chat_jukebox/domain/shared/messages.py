"""Centralized message constants for error messages, logging, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors
    EMPTY_TRACK_ID = "Track request ID cannot be empty"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Database Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Audio/Resolution Errors
    NO_URL_IN_INFO_DICT = "No URL found in info dict"
    NO_SEARCH_RESULTS = "No results found"
    EMPTY_PLAYLIST = "Playlist has no playable entries"
    DOWNLOAD_PRODUCED_NO_FILE = "Downloader reported success but produced no file"

    # Container
    CONTAINER_NOT_FOUND = "Container not found on application state"


class UserMessages:
    """Short messages returned to the chat or dashboard caller."""

    ENQUEUED = "Added: {title}"
    ALREADY_QUEUED = "Song already in queue: {title}"
    RATE_LIMITED = "Slow down! Try again in {seconds}s."
    NOT_FOUND = "No results found for: {query}"
    PLAYLIST_ENQUEUED = "Added {added} tracks ({duplicates} already queued, {failed} failed)."
    STORAGE_UNAVAILABLE = "The queue is temporarily unavailable. Please try again."
    SKIPPED = "Skipped: {title}"
    SKIP_NOT_ALLOWED = "You can only skip your own songs. VIPs can skip any song."
    NOTHING_PLAYING = "Nothing is currently playing"
    PAUSED = "Paused"
    RESUMED = "Resumed"
    CANNOT_PAUSE = "Nothing to pause"
    CANNOT_RESUME = "Nothing to resume"
    SEEKED = "Seeked to {position}"
    REMOVED = "Removed: {title}"
    INVALID_INDEX = "Invalid index."
    REORDERED = "Moved track from position {from_pos} to {to_pos}"
    PREFETCH_STARTED = "Prefetching {count} tracks"
    SESSION_RESET = "New session started. Queue cleared."


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Application Lifecycle
    APP_STARTING = "Starting chat jukebox (environment=%s)"
    APP_STOPPED = "Chat jukebox stopped"
    APP_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down"
    APP_FATAL_ERROR = "Fatal error: %s"
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to basic config"

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Admission
    ADMISSION_DENIED = "Rate limit hit: user=%s command=%s wait=%.1fs"
    ADMISSION_CHECK_FAILED = "Rate limit check failed for user=%s command=%s; allowing"
    ADMISSION_RECORD_FAILED = "Failed to record request for user=%s command=%s: %s"
    RATE_LIMIT_CONFIG_UPDATED = "Rate limit config updated: enabled=%s max=%d window=%ds"
    PERFORMANCE_CONFIG_UPDATED = "Performance config updated: prefetch_next=%s prefetch_count=%d"
    SETTING_READ_FAILED = "Failed to read setting %s, using default: %s"
    PRIORITY_LOOKUP_FAILED = "Priority lookup failed for user=%s: %s"
    PRIORITY_SEEDED = "Seeded %d priority users"

    # Queue
    QUEUE_TRACK_ADDED = "Queued track=%s title=%r requester=%s position=%d"
    QUEUE_DUPLICATE = "Duplicate enqueue ignored: track=%s requester=%s url=%s"
    QUEUE_TRACK_REMOVED = "Removed track=%s from position %d"
    QUEUE_REORDERED = "Moved track=%s from %d to %d"
    QUEUE_CLEARED = "Cleared %d queued tracks"
    QUEUE_RESTORED = "Restored %d queued tracks from storage"
    QUEUE_PERSIST_FAILED = "Failed to persist queue during %s (track=%s)"
    QUEUE_ENTRY_RESET = "Reset track=%s to queued on restore (was %s)"

    # Prefetch
    PREFETCH_DISABLED = "Prefetch disabled; skipping trigger"
    PREFETCH_SCHEDULED = "Scheduled prefetch for %d tracks (cap=%d)"
    PREFETCH_STARTED = "Prefetching track=%s source=%r"
    PREFETCH_COMPLETED = "Prefetched track=%s to %s"
    PREFETCH_FAILED = "Prefetch failed for track=%s requester=%s: %s"
    PREFETCH_NO_RESULTS = "No results for track=%s; removing from queue"
    PREFETCH_CANCELLED = "Prefetch cancelled for track=%s"
    PREFETCH_ORPHANED = "Track=%s left the queue during download; discarding media"
    PREFETCH_UNEXPECTED_ERROR = "Unexpected prefetch error for track=%s"

    # Playback
    PLAYBACK_STATE_CHANGED = "Playback state %s -> %s (track=%s)"
    PLAYBACK_STARTED = "Now playing track=%s title=%r"
    PLAYBACK_WAITING_FOR_HEAD = "Waiting for head track=%s to become ready (status=%s)"
    PLAYBACK_HEAD_TIMEOUT = "Head track=%s not ready after %.0fs; skipping"
    PLAYBACK_HEAD_FAILED = "Head track=%s failed to prefetch; skipping"
    PLAYBACK_START_FAILED = "Failed to start playback for track=%s"
    PLAYBACK_QUEUE_EXHAUSTED = "Queue exhausted; playback idle"
    PLAYBACK_SKIPPED = "Skipped track=%s by user=%s"
    PLAYBACK_SKIP_DENIED = "Skip denied for user=%s on track=%s (requester=%s)"
    PLAYBACK_TRACK_FINISHED = "Track finished naturally: track=%s"
    PLAYBACK_IGNORED_END = "Ignoring end callback for intentionally stopped track=%s"
    PLAYBACK_SEEK = "Seek track=%s to %dms (requested %dms)"
    PLAYBACK_ADVANCE_FAILED = "Failed to advance playback"
    SESSION_RESET = "Session reset: cleared %d queued tracks"

    # Media cleanup
    MEDIA_DELETED = "Deleted media file %s"
    MEDIA_DELETE_FAILED = "Failed to delete media file %s: %s"
    MEDIA_PROTECTED = "Skipping cleanup of %s; it backs the current track"
    MEDIA_ORPHANS_SWEPT = "Swept %d orphaned media files"

    # Rate-limit sweep
    SWEEP_STARTED = "Rate-limit sweep job started"
    SWEEP_STOPPED = "Rate-limit sweep job stopped"
    SWEEP_ALREADY_RUNNING = "Rate-limit sweep job already running"
    SWEEP_CYCLE_RUNNING = "Running rate-limit sweep cycle"
    SWEEP_COMPLETED = "Rate-limit sweep removed %d expired records"
    SWEEP_FAILED = "Rate-limit sweep failed: %s"
    SWEEP_LOOP_ERROR = "Error during rate-limit sweep loop"

    # Audio adapters
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info for URL: %s"
    YTDLP_FAILED_SEARCH = "Search failed for query: %s"
    YTDLP_FAILED_EXTRACT_PLAYLIST = "Failed to extract playlist: %s"
    YTDLP_DOWNLOAD_STARTED = "Downloading %s to %s"
    YTDLP_DOWNLOAD_FAILED = "Download failed for %s"
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"
    PLAYER_SPAWNED = "Spawned %s (pid=%s) for %s at %dms"
    PLAYER_EXITED = "Player process exited with code %s"
    PLAYER_CALLBACK_FAILED = "Track end callback raised"

    # Events
    EVENT_HANDLER_FAILED = "Handler for %s failed (attempt %d/%d)"
    EVENT_HANDLER_GAVE_UP = "Handler for %s failed after %d attempts"

    # Command handlers
    COMMAND_FAILED = "Command %s failed for user=%s target=%s: %s"

    # HTTP
    API_STARTING = "Dashboard API listening on %s:%d"
