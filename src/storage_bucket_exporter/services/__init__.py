"""Storage services for the storage bucket exporter."""
