"""Exceptions raised by the meal-plan pipeline."""


class MealPlanError(Exception):
    """Base class for every meal-plan failure."""


class PlanRequestError(MealPlanError, ValueError):
    """Caller input rejected before any upstream call was made."""


class PlanPersistenceError(MealPlanError):
    """A Plan or Recipe write failed; the invocation is abandoned."""


class RecipeDetailsError(MealPlanError):
    """The recipe synthesizer could not produce ingredients/directions."""


class PlannerUnavailableError(MealPlanError):
    """The plan skeleton generator could not be reached at all."""
