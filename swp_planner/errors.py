from __future__ import annotations


class PlannerError(Exception):
    """Base class for planner failures."""


class InvalidInputError(PlannerError, ValueError):
    """Inputs the engine refuses to simulate over."""


class SimulationCancelled(PlannerError):
    """A running simulation was stopped by its caller."""


class ScenarioNotFoundError(PlannerError, KeyError):
    pass


class RecordNotFoundError(PlannerError, KeyError):
    pass
