"""Exceptions raised by confind."""


class ConFindError(Exception):
    """Base class for all confind errors."""


class RotamerLibraryError(ConFindError):
    """The rotamer library could not be read or is malformed."""


class NotReadyError(ConFindError):
    """
    An aggregation step was requested for a residue whose prerequisite
    data (its own rotamers and collisions with every neighbor) is not cached.
    """

    def __init__(self, residue, state):
        self.residue = residue
        self.state = state
        super().__init__(
            f"residue {residue} is in cache state {state.name}; "
            f"collisions with all neighbors must be computed first"
        )


class StaleHandleError(ConFindError):
    """A residue handle no longer refers to the structure it was taken from."""


class LogFileError(ConFindError):
    """The rotamer decision log could not be opened."""
