"""Base Pydantic model configuration for tapconf models.

All tapconf models inherit from TapconfBaseModel to ensure consistent behavior:
- Immutability (frozen=True) so listing snapshots can be shared between checks
- Strict validation (extra="forbid") to catch typos and invalid fields
- Flexible field naming (populate_by_name=True) for alias support
"""

from pydantic import BaseModel, ConfigDict


class TapconfBaseModel(BaseModel):
    """Base model for all tapconf entities.

    Example:
        >>> class MyModel(TapconfBaseModel):
        ...     name: str
        >>> MyModel(name="pubunistr0").name
        'pubunistr0'
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        use_enum_values=False,
        validate_default=True,
    )
