"""Dosage submission ingestion and report export."""
__version__ = "0.4.0"
