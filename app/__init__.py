"""URL shortener service: race-safe short-code allocation and redirects."""
