"""
Rename downloaded media into the directory layout Plex expects.

Files found below an input path are normalized with configurable literal
replacements, classified as TV episodes or movies by ordered regular
expressions, resolved against TheTVDB for their canonical names, and then
moved, copied or symlinked to `Show/Season NN/Show - SxxEyy.ext` or
`Movie (Year)/Movie (Year).ext` under the output directory.

The package is organized as:
- rename: the per-file pipeline (parsing, path formatting, file actions, batch runs).
- utils: logging, configuration, directory walking and metadata lookups.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
