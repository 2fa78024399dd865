"""

Fehlerklassen des Shard-Speichers. Strukturelle Fehler brechen die
aktuelle Operation ab und werden bis zum Orchestrator weitergereicht.

"""


class ShardError(Exception):
    pass


class StructuralError(ShardError):
    """
    Eine Operation ist auf der gegebenen Tiefe bzw. dem gegebenen Shard
    nicht anwendbar (ungültige Tiefe, leerer Shard, ...).
    """


class IncompatibleDepthsError(StructuralError):
    def __init__(self, above, below):
        super().__init__(f"Levels {above} and {below} are not adjacent")
        self.above = above
        self.below = below


class VariableMismatchError(StructuralError):
    def __init__(self, top_nvar, bottom_nvar):
        super().__init__(f"Cannot join shards over {top_nvar} and {bottom_nvar} variables")
        self.top_nvar = top_nvar
        self.bottom_nvar = bottom_nvar


class DumpFormatError(StructuralError):
    pass
