# checklist/core/errors.py


class SubtaskError(Exception):
    pass


class StoreError(SubtaskError):
    """Any failure coming back from the record store (network, RLS, constraint...)."""
    pass


class InvalidParentError(SubtaskError):
    pass


class SubtaskNotFoundError(SubtaskError):
    pass
