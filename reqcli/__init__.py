"""reqcli - a command-line HTTP client with rate limiting and pluggable auth."""

__version__ = "0.1.0"
