"""Domain exceptions.

Routes translate these into HTTP responses; ``StoreUnavailableError`` is
handled globally in ``app.main`` and answered with 503.
"""


class NotFoundError(Exception):
    """An update, delete or feedback targeted an id that does not exist."""

    def __init__(self, kind: str, entity_id):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found with id: {entity_id}")


class StoreUnavailableError(Exception):
    """The backing database could not be reached or failed mid-call."""
