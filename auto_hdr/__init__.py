"""Display reconciliation services for the mpv Auto HDR/Refresh manager."""
