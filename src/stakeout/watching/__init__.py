"""File watching for stakeout.

Expands the operator's glob patterns into a watch set and reports, one at
a time, files whose modification time moved forward since the last poll.
"""

from stakeout.watching.tracker import (
    FileStateTracker,
    WatchSet,
)

__all__ = [
    "FileStateTracker",
    "WatchSet",
]
