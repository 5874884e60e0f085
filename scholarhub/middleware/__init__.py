"""Request middleware: logging, timing, security headers, rate limits."""
