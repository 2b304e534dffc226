"""URL shortener service: short links, vanity segments, expiry and click stats."""

__version__ = "1.0.0"
