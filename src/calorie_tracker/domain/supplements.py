"""Domain models for supplements and logged supplement doses."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4

from calorie_tracker.domain.errors import MissingReferenceBasisError
from calorie_tracker.domain.nutrients import NutrientRecord


class DosageForm(StrEnum):
    """Physical form of a supplement."""

    TABLET = "tablet"
    CAPSULE = "capsule"
    SOFTGEL = "softgel"
    GUMMY = "gummy"
    LIQUID = "liquid"
    POWDER = "powder"


@dataclass(frozen=True)
class Supplement:
    """A vitamin or mineral product whose nutrients are per serving."""

    name: str
    brand: str | None = None
    dosage_form: DosageForm = DosageForm.TABLET
    serving_size: float = 1.0
    serving_unit: str = "tablet"
    notes: str | None = None
    nutrients: NutrientRecord = field(default_factory=NutrientRecord)
    id: UUID = field(default_factory=uuid4)
    user_id: UUID | None = None
    date_added: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def __post_init__(self) -> None:
        if not self.serving_size > 0:
            raise MissingReferenceBasisError(
                f"Supplement {self.name!r} needs a positive serving size, "
                f"got {self.serving_size!r}."
            )


@dataclass
class SupplementEntry:
    """A logged dose with nutrients frozen at logging time."""

    amount: float
    unit: str
    nutrients: NutrientRecord = field(default_factory=NutrientRecord)
    supplement_name: str | None = None
    supplement_id: UUID | None = None
    daily_log_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def display_name(self) -> str:
        return self.supplement_name or "Unknown Supplement"


@dataclass(frozen=True)
class SupplementDay:
    """A day's supplement doses and their summed nutrients."""

    entries: list[SupplementEntry]
    totals: NutrientRecord
