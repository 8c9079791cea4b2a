class ReplayIntegrityError(Exception):
    """Raised when replay meets an event it has no reducer for."""
    pass
