"""Project-wide constants (storage layout, limits, tunnel discovery)."""

STORAGE_SUBDIR: str = "luutam"

MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024 * 1024  # 100 GiB ceiling per file

STREAM_PIECE_SIZE: int = 1024 * 1024

DEFAULT_PORT: int = 3000

TUNNEL_DOMAIN: str = "trycloudflare.com"

MULTIPART_OVERHEAD_BYTES: int = 64 * 1024  # boundary and part headers allowed on top of one file
