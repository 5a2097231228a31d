"""Script generation pipeline service.

Runs each submitted job through ingestion, transcription (video only),
generation, and best-effort augmentation, persisting every transition on the
job record.
"""

__version__ = "1.0.0"
