"""MediaVault: media ingestion with asynchronous thumbnail, OCR and search indexing."""

__version__ = "0.1.0"
