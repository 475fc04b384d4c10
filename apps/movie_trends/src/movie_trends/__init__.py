"""Daily movie trend ingestion and topic ranking."""
