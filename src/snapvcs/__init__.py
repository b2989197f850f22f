"""snapvcs - a minimal, local, snapshot-based version control engine.

snapvcs tracks snapshots of a working directory as immutable,
content-addressed commits linked into a parent chain, with a staging area
between the working directory and the next commit and named branch pointers.
"""

from snapvcs.constants import VERSION

__version__ = VERSION
__author__ = "snapvcs Contributors"

__all__ = ["__version__", "__author__"]
