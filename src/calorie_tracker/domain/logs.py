"""Domain models for daily logs, templates and summaries."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.nutrients import NutrientDefinition, NutrientRecord


@dataclass(frozen=True)
class DailyTargets:
    """Calorie and macro targets snapshotted onto a daily log."""

    calories: float = 2000.0
    protein: float = 50.0
    carbohydrates: float = 250.0
    fat: float = 65.0


@dataclass
class DailyLog:
    """All consumption for one calendar day."""

    day: date
    targets: DailyTargets = field(default_factory=DailyTargets)
    entries: list[FoodEntry] = field(default_factory=list)
    ai_micronutrients: NutrientRecord = field(default_factory=NutrientRecord)
    ai_sodium: float | None = None
    analysis_date: datetime | None = None
    id: UUID = field(default_factory=uuid4)
    user_id: UUID | None = None

    @property
    def has_ai_analysis(self) -> bool:
        """Return True when a whole-day AI override is active."""
        return self.analysis_date is not None

    def sorted_entries(self) -> list[FoodEntry]:
        """Entries ordered by timestamp."""
        return sorted(self.entries, key=lambda entry: entry.timestamp)


@dataclass
class AIFoodTemplate:
    """A cached AI estimate reusable without another AI call."""

    name: str
    amount: float
    unit: str
    calories: float
    protein: float | None = None
    carbohydrates: float | None = None
    fat: float | None = None
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    fibre: float | None = None
    sodium: float | None = None
    nutrients: NutrientRecord = field(default_factory=NutrientRecord)
    ai_prompt: str | None = None
    id: UUID = field(default_factory=uuid4)
    user_id: UUID | None = None
    date_created: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    last_used: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    use_count: int = 1

    @property
    def normalized_name(self) -> str:
        """Lookup key shared by names differing only in case or padding."""
        return normalize_food_name(self.name)


def normalize_food_name(name: str) -> str:
    """Normalize a food name for case-insensitive template lookup."""
    return " ".join(name.split()).casefold()


@dataclass(frozen=True)
class LimitStatus:
    """Intake against a max-limit metric such as sugar or sodium."""

    total: float
    base_limit: float
    bonus: float
    limit: float
    over_limit: bool


@dataclass(frozen=True)
class MicronutrientReading:
    """Dashboard row for one vitamin or mineral."""

    definition: NutrientDefinition
    value: float
    progress: float
    over_upper_limit: bool

    @property
    def formatted(self) -> str:
        """Value formatted with the nutrient's precision."""
        return self.definition.format(self.value)


@dataclass(frozen=True)
class DaySummary:
    """Rolled-up view of a daily log."""

    day: date
    targets: DailyTargets
    calories: float
    protein: float
    carbohydrates: float
    fat: float
    fibre: float
    sodium: float
    sugar: float
    natural_sugar: float
    added_sugar: float
    calories_remaining: float
    calorie_progress: float
    protein_progress: float
    carbohydrate_progress: float
    fat_progress: float
    salt_grams: float
    sugar_status: LimitStatus
    sodium_status: LimitStatus
    micronutrients: list[MicronutrientReading]
    micronutrient_source: str
    entry_count: int


@dataclass(frozen=True)
class DailyTotals:
    """Summed as-consumed macros for a set of entries."""

    calories: float = 0.0
    protein: float = 0.0
    carbohydrates: float = 0.0
    fat: float = 0.0
    fibre: float = 0.0
    sodium: float = 0.0
    sugar: float = 0.0
    natural_sugar: float = 0.0
    added_sugar: float = 0.0


@dataclass(frozen=True)
class HistoryDay:
    """Totals for one past day in the history list."""

    day: date
    targets: DailyTargets
    totals: DailyTotals
    entry_count: int
