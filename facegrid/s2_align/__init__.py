"""S2: Face detection and alignment.

For every input photograph, detects faces, rejects anything that does not
contain exactly one face, and rescales the photograph so the face matches a
fixed target box, recording where it must be pasted inside its grid cell.
"""
