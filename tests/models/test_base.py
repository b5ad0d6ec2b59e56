"""Tests for the tapconf base model configuration."""

import pytest
from pydantic import ValidationError

from tapconf.models.base import TapconfBaseModel


class _Sample(TapconfBaseModel):
    name: str


class TestTapconfBaseModel:
    """Tests for TapconfBaseModel."""

    def test_models_are_frozen(self) -> None:
        """Listing snapshots cannot be changed after creation."""
        sample = _Sample(name="pubunistr0")

        with pytest.raises(ValidationError):
            sample.name = "pubunistr1"  # type: ignore[misc]

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            _Sample(name="pubunistr0", unexpected=True)  # type: ignore[call-arg]

    def test_models_are_hashable(self) -> None:
        assert len({_Sample(name="a"), _Sample(name="a")}) == 1
