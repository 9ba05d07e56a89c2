"""Typed failures raised by the graph store and the mutation API."""


class KinshipError(Exception):
    """Base class for every structural failure."""


class NotFound(KinshipError):
    def __init__(self, ident: str, what: str = "person"):
        super().__init__(what, ident)
        self.ident = ident
        self.what = what


class InvalidSelfRelation(KinshipError):
    def __init__(self, person_id: str):
        super().__init__(person_id)
        self.person_id = person_id


class DuplicateRelation(KinshipError):
    def __init__(self, existing_id: str):
        super().__init__(existing_id)
        self.existing_id = existing_id


class ConflictingRelation(KinshipError):
    """A spouse edge and a sibling edge would join the same two people."""

    def __init__(self, existing_id: str):
        super().__init__(existing_id)
        self.existing_id = existing_id


class CycleDetected(KinshipError):
    """The parent edge would make someone their own ancestor."""

    def __init__(self, parent_id: str, child_id: str):
        super().__init__(parent_id, child_id)
        self.parent_id = parent_id
        self.child_id = child_id


class UnknownRelationKind(KinshipError, ValueError):
    def __init__(self, value):
        super().__init__(value)
        self.value = value
