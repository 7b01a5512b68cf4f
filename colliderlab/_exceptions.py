from __future__ import annotations


class InvalidParameter(ValueError):
    """Raised when a simulation or experiment argument is out of range."""
    pass


class FittingFailure(RuntimeError):
    """
    Raised when a workflow (one feature set paired with one model) cannot be
    fitted or tuned.

    The experiment pipeline does not propagate these: each failure is logged,
    collected on ``ExperimentResult.failures`` and the workflow is left out of
    the comparison. Only when every workflow fails is one raised to the caller.
    """

    def __init__(self, wflow_id: str, message: str, cause: BaseException | None = None) -> None:
        super().__init__(f"{wflow_id}: {message}")
        self.wflow_id = wflow_id
        self.cause = cause


class GraphError(Exception):
    """Raised when the DAG is structurally invalid."""
    pass
