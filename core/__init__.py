"""Camera path and logging setup."""
