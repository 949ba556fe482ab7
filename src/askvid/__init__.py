"""askvid - ask questions about a YouTube video from the terminal."""

__version__ = "0.1.0"
