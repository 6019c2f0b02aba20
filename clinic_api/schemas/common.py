"""Validation helpers shared by partial-update schemas."""

from collections.abc import Iterable

from pydantic import BaseModel


def reject_explicit_nulls(model: BaseModel, fields: Iterable[str]) -> None:
    """
    Refuse ``null`` sent for a column that cannot be cleared.

    Omitting a field leaves it unchanged; sending ``null`` for one of
    ``fields`` is a client error.

    Raises:
        ValueError: If any of ``fields`` was explicitly set to None
    """
    cleared = sorted(
        name for name in fields if name in model.model_fields_set and getattr(model, name) is None
    )
    if cleared:
        raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
