"""transcribex — long-form Whisper transcription with window stitching."""

__version__ = '0.1.0'
