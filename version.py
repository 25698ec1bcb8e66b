"""Release version for the mpv Auto HDR/Refresh manager."""

__version__ = "1.1.0"
