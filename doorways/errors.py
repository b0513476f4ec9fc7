"""
Error kinds raised across the launcher.

Launch-time errors (MissingLaunchTarget, SpawnFailure) and probe errors are
recovered into a LaunchStatus for the affected entry. ExitQueryFailure and
ChannelClosed are fatal to the monitor thread.
"""
from typing import Optional


class DoorwaysError(Exception):
    """Base class for all launcher errors."""


class MissingLaunchTarget(DoorwaysError):
    def __init__(self, entry_id: str):
        super().__init__(f"Unable to launch {entry_id}: missing launch_url or command")
        self.entry_id = entry_id


class SpawnFailure(DoorwaysError):
    def __init__(self, argv, cause: OSError):
        super().__init__(f"Unable to spawn {argv!r}: {cause}")
        self.argv = argv
        self.cause = cause


class ProbeFailure(DoorwaysError):
    pass


class ExitQueryFailure(DoorwaysError):
    def __init__(self, index: int, cause: Optional[BaseException] = None):
        super().__init__(f"Error waiting on child for entry {index}: {cause}")
        self.index = index
        self.cause = cause


class ChannelClosed(DoorwaysError):
    pass


class CatalogError(DoorwaysError):
    pass


class SourceError(DoorwaysError):
    pass
