"""Helpers for accepting enum members or their raw values at service boundaries."""
import enum
from typing import TypeVar

from firm_billing.exceptions import InvalidCategory

E = TypeVar("E", bound=enum.Enum)


def coerce_category(enum_cls: type[E], value: E | str) -> E:
    """
    Convert a raw value to an enum member.

    Args:
        enum_cls: Target enum class
        value: Enum member or its string value

    Returns:
        The matching enum member

    Raises:
        InvalidCategory: If the value names no member of enum_cls

    Example:
        >>> coerce_category(CostCategory, "base_plan")
        <CostCategory.BASE_PLAN: 'base_plan'>
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidCategory(f"Unknown {enum_cls.__name__} {value!r}; expected one of: {allowed}") from None
