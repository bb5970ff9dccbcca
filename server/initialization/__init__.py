"""Process initialization: logging and shutdown."""
