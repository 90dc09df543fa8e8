"""S3: Grid layout planning."""
