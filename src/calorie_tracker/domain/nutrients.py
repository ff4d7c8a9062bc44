"""Vitamin and mineral catalog and sparse nutrient records."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum

from calorie_tracker.domain.errors import UnknownNutrientError


class NutrientCategory(StrEnum):
    """Grouping used by the micronutrient dashboard."""

    VITAMIN = "vitamin"
    MINERAL = "mineral"


class NutrientId(StrEnum):
    """Closed set of tracked vitamin and mineral ids."""

    VITAMIN_A = "vitaminA"
    VITAMIN_C = "vitaminC"
    VITAMIN_D = "vitaminD"
    VITAMIN_E = "vitaminE"
    VITAMIN_K = "vitaminK"
    VITAMIN_B1 = "vitaminB1"
    VITAMIN_B2 = "vitaminB2"
    VITAMIN_B3 = "vitaminB3"
    VITAMIN_B5 = "vitaminB5"
    VITAMIN_B6 = "vitaminB6"
    VITAMIN_B7 = "vitaminB7"
    VITAMIN_B12 = "vitaminB12"
    FOLATE = "folate"
    CALCIUM = "calcium"
    IRON = "iron"
    ZINC = "zinc"
    MAGNESIUM = "magnesium"
    POTASSIUM = "potassium"
    PHOSPHORUS = "phosphorus"
    SELENIUM = "selenium"
    COPPER = "copper"
    MANGANESE = "manganese"
    CHROMIUM = "chromium"
    MOLYBDENUM = "molybdenum"
    IODINE = "iodine"
    CHLORIDE = "chloride"


@dataclass(frozen=True)
class NutrientDefinition:
    """Static metadata for a single vitamin or mineral."""

    id: NutrientId
    name: str
    short_name: str
    unit: str
    target: float
    upper_limit: float | None
    decimal_places: int
    category: NutrientCategory

    def round(self, value: float) -> float:
        """Round a value to this nutrient's display precision."""
        return round(value, self.decimal_places)

    def format(self, value: float) -> str:
        """Format a value with the nutrient's precision and unit."""
        return f"{value:.{self.decimal_places}f} {self.unit}"


def _vitamin(  # noqa: PLR0913
    nutrient_id: NutrientId,
    name: str,
    short_name: str,
    unit: str,
    target: float,
    upper_limit: float | None,
    decimal_places: int,
) -> NutrientDefinition:
    return NutrientDefinition(
        nutrient_id,
        name,
        short_name,
        unit,
        target,
        upper_limit,
        decimal_places,
        NutrientCategory.VITAMIN,
    )


def _mineral(  # noqa: PLR0913
    nutrient_id: NutrientId,
    name: str,
    short_name: str,
    unit: str,
    target: float,
    upper_limit: float | None,
    decimal_places: int,
) -> NutrientDefinition:
    return NutrientDefinition(
        nutrient_id,
        name,
        short_name,
        unit,
        target,
        upper_limit,
        decimal_places,
        NutrientCategory.MINERAL,
    )


NUTRIENT_CATALOG: tuple[NutrientDefinition, ...] = (
    _vitamin(NutrientId.VITAMIN_A, "Vitamin A", "A", "mcg", 800, 3000, 1),
    _vitamin(NutrientId.VITAMIN_C, "Vitamin C", "C", "mg", 80, 2000, 1),
    _vitamin(NutrientId.VITAMIN_D, "Vitamin D", "D", "mcg", 10, 100, 1),
    _vitamin(NutrientId.VITAMIN_E, "Vitamin E", "E", "mg", 12, 540, 2),
    _vitamin(NutrientId.VITAMIN_K, "Vitamin K", "K", "mcg", 75, None, 1),
    _vitamin(NutrientId.VITAMIN_B1, "Vitamin B1 (Thiamin)", "B1", "mg", 1.1, None, 3),
    _vitamin(
        NutrientId.VITAMIN_B2, "Vitamin B2 (Riboflavin)", "B2", "mg", 1.4, None, 3
    ),
    _vitamin(NutrientId.VITAMIN_B3, "Vitamin B3 (Niacin)", "B3", "mg", 16, 35, 1),
    _vitamin(
        NutrientId.VITAMIN_B5,
        "Vitamin B5 (Pantothenic Acid)",
        "B5",
        "mg",
        5,
        None,
        2,
    ),
    _vitamin(NutrientId.VITAMIN_B6, "Vitamin B6", "B6", "mg", 1.4, 25, 2),
    _vitamin(NutrientId.VITAMIN_B7, "Vitamin B7 (Biotin)", "B7", "mcg", 30, None, 1),
    _vitamin(NutrientId.VITAMIN_B12, "Vitamin B12", "B12", "mcg", 2.5, None, 2),
    _vitamin(NutrientId.FOLATE, "Folate (B9)", "Folate", "mcg", 400, 1000, 1),
    _mineral(NutrientId.CALCIUM, "Calcium", "Calcium", "mg", 1000, 2500, 0),
    _mineral(NutrientId.IRON, "Iron", "Iron", "mg", 14, 45, 1),
    _mineral(NutrientId.ZINC, "Zinc", "Zinc", "mg", 10, 25, 1),
    _mineral(NutrientId.MAGNESIUM, "Magnesium", "Magnes.", "mg", 375, 400, 0),
    _mineral(NutrientId.POTASSIUM, "Potassium", "Potass.", "mg", 3500, 6000, 0),
    _mineral(NutrientId.PHOSPHORUS, "Phosphorus", "Phosph.", "mg", 700, 4000, 0),
    _mineral(NutrientId.SELENIUM, "Selenium", "Selenium", "mcg", 55, 400, 1),
    _mineral(NutrientId.COPPER, "Copper", "Copper", "mg", 1, 5, 2),
    _mineral(NutrientId.MANGANESE, "Manganese", "Mangan.", "mg", 2, 11, 2),
    _mineral(NutrientId.CHROMIUM, "Chromium", "Chromium", "mcg", 35, None, 1),
    _mineral(NutrientId.MOLYBDENUM, "Molybdenum", "Molyb.", "mcg", 45, 2000, 1),
    _mineral(NutrientId.IODINE, "Iodine", "Iodine", "mcg", 150, 1100, 1),
    _mineral(NutrientId.CHLORIDE, "Chloride", "Chloride", "mg", 2300, 3600, 0),
)


def _index_catalog(
    catalog: tuple[NutrientDefinition, ...],
) -> dict[NutrientId, NutrientDefinition]:
    """Index definitions by id, enforcing uniqueness and positive targets."""
    indexed: dict[NutrientId, NutrientDefinition] = {}
    for definition in catalog:
        if definition.id in indexed:
            raise ValueError(f"Duplicate nutrient id in catalog: {definition.id}")
        if definition.target <= 0:
            raise ValueError(f"Nutrient target must be positive: {definition.id}")
        indexed[definition.id] = definition
    return indexed


_BY_ID = _index_catalog(NUTRIENT_CATALOG)


def parse_nutrient_id(raw: str) -> NutrientId:
    """Return the catalog id for a raw key or raise UnknownNutrientError."""
    try:
        return NutrientId(raw)
    except ValueError:
        raise UnknownNutrientError(raw) from None


def get_definition(nutrient_id: NutrientId | str) -> NutrientDefinition:
    """Look up a nutrient definition by id."""
    return _BY_ID[parse_nutrient_id(nutrient_id)]


def definitions_in(category: NutrientCategory) -> list[NutrientDefinition]:
    """Return catalog definitions for a category in catalog order."""
    return [item for item in NUTRIENT_CATALOG if item.category == category]


class NutrientRecord(Mapping[NutrientId, float]):
    """Sparse, immutable nutrient-id to amount mapping.

    A missing key means the amount is unknown. A stored ``0.0`` means the
    amount is known to be zero. Keys are validated against the catalog.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, float | None] | None = None) -> None:
        parsed: dict[NutrientId, float] = {}
        for key, amount in (values or {}).items():
            nutrient_id = parse_nutrient_id(key)
            if amount is None:
                continue
            parsed[nutrient_id] = float(amount)
        self._values = parsed

    def __getitem__(self, key: NutrientId | str) -> float:
        return self._values[parse_nutrient_id(key)]

    def __iter__(self) -> Iterator[NutrientId]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"NutrientRecord({self.to_dict()!r})"

    def value(self, nutrient_id: NutrientId | str) -> float | None:
        """Return the stored amount, or None when unknown."""
        return self._values.get(parse_nutrient_id(nutrient_id))

    def scaled(self, factor: float) -> "NutrientRecord":
        """Return a copy with every known amount multiplied by factor."""
        return NutrientRecord(
            {key: amount * factor for key, amount in self._values.items()}
        )

    def rounded(self) -> "NutrientRecord":
        """Return a copy rounded to each nutrient's decimal places."""
        return NutrientRecord(
            {key: _BY_ID[key].round(amount) for key, amount in self._values.items()}
        )

    def to_dict(self) -> dict[str, float]:
        """Serialize to a plain dict keyed by nutrient id strings."""
        return {str(key): amount for key, amount in self._values.items()}
