# facegrid/s1_inputs/__init__.py

"""S1: Input enumeration and image decode/encode.

Expands the input glob pattern into a sorted list of candidate files and
provides the Pillow-backed helpers used to read photographs and write the
final canvas.
"""
