"""S5: Run report.

Writes the per-image table and the run manifest, and logs the final counts.
"""
