"""Input bounding shared by the gridded interpolation algorithms."""

from __future__ import annotations

from aerotab.core.bindings import VariableBinding
from aerotab.core.breakpoints import BreakpointSet


def effective_input(x: float, binding: VariableBinding, axis: BreakpointSet) -> float:
    """Return the value actually used for one dimension.

    Outside the breakpoint range the value is pinned to the nearest end
    unless the binding's extrapolation policy allows that direction. The
    binding's ``min``/``max`` are applied last, so they always hold,
    whatever the extrapolation policy says.

    Args:
        x: Current value of the bound variable
        binding: Dimension policy
        axis: Breakpoints of the dimension

    Returns:
        The bounded value
    """
    policy = binding.extrapolate
    if x < axis.lower and not policy.below:
        x = axis.lower
    elif x > axis.upper and not policy.above:
        x = axis.upper
    return binding.bound(x)
