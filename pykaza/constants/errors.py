from __future__ import annotations

import enum

__all__ = (
    "ErrorCode",
    "ERROR_MESSAGES",
    "ERROR_SUGGESTIONS",
    "RECOVERABLE_CODES",
    "RETRYABLE_CODES",
)


class ErrorCode(str, enum.Enum):
    # Connection
    CONNECTION_FAILED = "CONNECTION_FAILED"
    NODE_UNAVAILABLE = "NODE_UNAVAILABLE"
    LAVALINK_ERROR = "LAVALINK_ERROR"

    # Player
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    VOICE_CONNECTION_FAILED = "VOICE_CONNECTION_FAILED"
    TRACK_FAILED = "TRACK_FAILED"

    # Search
    NO_RESULTS = "NO_RESULTS"
    SEARCH_FAILED = "SEARCH_FAILED"
    INVALID_URL = "INVALID_URL"
    PLATFORM_UNAVAILABLE = "PLATFORM_UNAVAILABLE"

    # Configuration
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    INVALID_CONFIG = "INVALID_CONFIG"
    PLUGIN_LOAD_FAILED = "PLUGIN_LOAD_FAILED"

    # Queue
    QUEUE_EMPTY = "QUEUE_EMPTY"
    TRACK_NOT_FOUND = "TRACK_NOT_FOUND"
    INVALID_INDEX = "INVALID_INDEX"

    # General
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"

    def __str__(self) -> str:
        return self.value


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.CONNECTION_FAILED: "Failed to connect to the Lavalink server",
    ErrorCode.NODE_UNAVAILABLE: "No available Lavalink nodes",
    ErrorCode.LAVALINK_ERROR: "Lavalink server encountered an error",
    ErrorCode.PLAYER_NOT_FOUND: "Music player not found for this server",
    ErrorCode.VOICE_CONNECTION_FAILED: "Failed to connect to the voice channel",
    ErrorCode.TRACK_FAILED: "Track playback failed",
    ErrorCode.NO_RESULTS: "No search results found",
    ErrorCode.SEARCH_FAILED: "Search request failed",
    ErrorCode.INVALID_URL: "Invalid or unsupported URL format",
    ErrorCode.PLATFORM_UNAVAILABLE: "Platform not available or configured",
    ErrorCode.MISSING_CREDENTIALS: "Missing required API credentials",
    ErrorCode.INVALID_CONFIG: "Invalid configuration provided",
    ErrorCode.PLUGIN_LOAD_FAILED: "Failed to load plugin",
    ErrorCode.QUEUE_EMPTY: "Queue is empty",
    ErrorCode.TRACK_NOT_FOUND: "Track not found in queue",
    ErrorCode.INVALID_INDEX: "Invalid queue index",
    ErrorCode.UNKNOWN_ERROR: "An unknown error occurred",
    ErrorCode.TIMEOUT: "Operation timed out",
    ErrorCode.RATE_LIMITED: "Rate limited by service",
}

ERROR_SUGGESTIONS: dict[ErrorCode, tuple[str, ...]] = {
    ErrorCode.CONNECTION_FAILED: (
        "Check if the Lavalink server is running",
        "Verify the server address and port",
        "Check firewall settings",
    ),
    ErrorCode.NODE_UNAVAILABLE: (
        "Add more Lavalink nodes",
        "Check node health status",
        "Verify node configuration",
    ),
    ErrorCode.PLATFORM_UNAVAILABLE: (
        "Configure the LavaSrc plugin in Lavalink",
        "Add the required API credentials",
        "Check platform-specific settings",
    ),
    ErrorCode.MISSING_CREDENTIALS: (
        "Add API keys to the Lavalink configuration",
        "Verify credential validity",
        "Check credential permissions",
    ),
    ErrorCode.INVALID_URL: (
        "Check the URL format",
        "Ensure the platform is supported",
        "Try a different URL from the platform",
    ),
    ErrorCode.VOICE_CONNECTION_FAILED: (
        "Check bot permissions in the voice channel",
        "Verify you are in a voice channel",
        "Try rejoining the voice channel",
    ),
    ErrorCode.NO_RESULTS: (
        "Try a different search term",
        "Check spelling and formatting",
        "Use a platform-specific search",
    ),
    ErrorCode.SEARCH_FAILED: (
        "Check your query format",
        "Verify the Lavalink server status",
        "Try a different search engine",
    ),
    ErrorCode.TIMEOUT: (
        "Try again in a moment",
        "Check the Lavalink server load",
    ),
    ErrorCode.RATE_LIMITED: ("Wait a moment before searching again",),
    ErrorCode.QUEUE_EMPTY: ("Add tracks to the queue first",),
    ErrorCode.INVALID_INDEX: ("Check the queue positions and try again",),
}

RECOVERABLE_CODES: frozenset[ErrorCode] = frozenset(
    {
        ErrorCode.CONNECTION_FAILED,
        ErrorCode.NO_RESULTS,
        ErrorCode.SEARCH_FAILED,
        ErrorCode.TRACK_FAILED,
        ErrorCode.TIMEOUT,
        ErrorCode.RATE_LIMITED,
        ErrorCode.QUEUE_EMPTY,
        ErrorCode.TRACK_NOT_FOUND,
        ErrorCode.INVALID_INDEX,
        ErrorCode.PLUGIN_LOAD_FAILED,
    }
)

RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({ErrorCode.TIMEOUT, ErrorCode.CONNECTION_FAILED})
