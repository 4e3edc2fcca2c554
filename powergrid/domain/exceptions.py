class EntityNotFound(Exception):
    """Raised when a referenced battery, solar array, load or connection does not exist."""

    def __init__(self, kind, entity_id):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} does not exist")


class GraphCycleDetected(Exception):
    """Raised when the connection graph contains a loop and cannot be traversed."""

    def __init__(self):
        super().__init__("Connection graph contains a cycle")


class InvalidConnection(Exception):
    """
    Raised when a connection names an unknown node type or an empty endpoint id,
    or when energy is drawn through a pair other than SOLAR -> BATTERY or
    BATTERY -> LOAD.
    """

    def __init__(self, reason):
        self.reason = reason
        super().__init__(reason)
