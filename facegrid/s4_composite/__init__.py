"""S4: Compositing.

Allocates the transparent RGBA canvas, pastes every aligned image into its
row-major cell clipped to the cell bounds, and encodes the result.
"""
