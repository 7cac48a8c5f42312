"""Project-wide constants (chunk sizes, flush threshold, offload defaults)."""

KIB: int = 1024
MIB: int = 1024 * KIB

DEFAULT_CHUNK_SIZE_BYTES: int = 1 * MIB
VIDEO_CHUNK_SIZE_BYTES: int = 2 * MIB
ARCHIVE_CHUNK_SIZE_BYTES: int = 4 * MIB
AUDIO_CHUNK_SIZE_BYTES: int = 1 * MIB
IMAGE_CHUNK_SIZE_BYTES: int = 512 * KIB

FLUSH_INTERVAL_BYTES: int = 10 * MIB  # explicit flush after this many bytes written

FALLBACK_MIME_TYPE: str = "application/octet-stream"

XSENDFILE_MODULE: str = "mod_xsendfile"
DEFAULT_NGINX_INTERNAL_PREFIX: str = "/protected/"

# Fixed date in the past so the header never varies between identical requests.
EXPIRES_IN_PAST: str = "Wed, 11 Jan 1984 05:00:00 GMT"
