class PlanningError(Exception):
    """Base class for pipeline failures that must stop a stage."""


class MissingPrerequisiteError(PlanningError):
    """
    Raised when a stage runs before the upstream snapshot it reads exists.
    """

    def __init__(self, prerequisite: str, stage: str = ""):
        self.prerequisite = prerequisite
        self.stage = stage
        where = f" before running {stage}" if stage else ""
        super().__init__(f"Missing prerequisite: {prerequisite} must be saved{where}")


class ReentrancyError(PlanningError):
    """Combined forecast built on combined forecasts deeper than policy allows."""

    def __init__(self, depth: int, max_depth: int):
        self.depth = depth
        self.max_depth = max_depth
        super().__init__(
            f"Combined forecast would be {depth} levels deep in previous combined "
            f"forecasts (max {max_depth}); set the previousCombined weight to 0"
        )


class NotFoundError(PlanningError):
    """An item or document addressed by id does not exist."""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"Unknown {kind}: {item_id}")
