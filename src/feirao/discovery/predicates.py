"""
Evaluador de filtros.

Combina cláusulas independientes con AND. Una cláusula ausente (texto
vacío, límite de precio sin definir, conjunto vacío) es verdadera.
Las comparaciones de texto ignoran mayúsculas y acentos.
"""

import re
import unicodedata
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

from feirao.exceptions import ValidationError
from feirao.models import Category, Condition, Listing

NumberLike = Union[str, int, float, Decimal, None]

# 1.234.567 -> separadores de miles sin parte decimal
_THOUSANDS_ONLY = re.compile(r"\d{1,3}(\.\d{3})+")


def parse_decimal(value: NumberLike) -> Optional[Decimal]:
    """
    Normaliza un número posiblemente formateado con locale (ej: "45.000,50").

    La coma es separador decimal y el punto de miles. Un valor malformado
    devuelve None (límite sin definir), nunca un error.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    else:
        text = str(value).replace("R$", "").replace("\xa0", "").replace(" ", "").strip()
        if not text:
            return None
        if "," in text:
            text = text.replace(".", "").replace(",", ".")
        elif _THOUSANDS_ONLY.fullmatch(text):
            text = text.replace(".", "")

    try:
        number = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def normalize_text(text: Optional[str]) -> str:
    """Minúsculas, sin acentos y con espacios colapsados."""
    normalized = unicodedata.normalize("NFKD", text or "")
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"\s+", " ", ascii_text).strip().lower()


def _contains(haystack: Optional[str], needle: str) -> bool:
    return needle in normalize_text(haystack)


def _to_condition(value) -> Condition:
    if isinstance(value, Condition):
        return value
    aliases = {"novo": Condition.NEW, "usado": Condition.USED}
    cleaned = str(value).strip().lower()
    try:
        return aliases.get(cleaned) or Condition(cleaned)
    except ValueError:
        raise ValidationError(f"Condición inválida: {value!r}") from None


def _parse_bounds(bounds: Optional[Mapping[str, NumberLike]]) -> dict[str, Decimal]:
    """Límites por atributo; los malformados quedan sin definir."""
    parsed = {}
    for key, value in (bounds or {}).items():
        number = parse_decimal(value)
        if number is not None:
            parsed[key] = number
    return parsed


@dataclass(frozen=True)
class FilterSpec:
    """
    Especificación de filtros inmutable provista por el llamador.

    Los límites de precio aceptan strings con formato local; un valor
    malformado queda como límite sin definir. min > max con ambos
    definidos es un ValidationError al construir.

    Los atributos de categoría (año, kilometraje, dormitorios, combustible,
    etc.) se filtran con attribute_equals, attribute_min y attribute_max,
    por nombre de atributo. Un listing sin el atributo no cumple la cláusula.
    """

    term: str = ""
    category: Optional[Category] = None
    min_price: NumberLike = None
    max_price: NumberLike = None
    location: str = ""
    conditions: frozenset = field(default_factory=frozenset)
    tags: frozenset = field(default_factory=frozenset)
    compatibility: str = ""
    attribute_equals: Mapping[str, Any] = field(default_factory=dict, hash=False)
    attribute_min: Mapping[str, NumberLike] = field(default_factory=dict, hash=False)
    attribute_max: Mapping[str, NumberLike] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # frozen: se normaliza con object.__setattr__
        for name in ("term", "location", "compatibility"):
            object.__setattr__(self, name, getattr(self, name) or "")

        object.__setattr__(self, "min_price", parse_decimal(self.min_price))
        object.__setattr__(self, "max_price", parse_decimal(self.max_price))

        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValidationError(
                f"Rango de precio inválido: mínimo {self.min_price} > máximo {self.max_price}"
            )

        if self.category is not None and not isinstance(self.category, Category):
            try:
                object.__setattr__(self, "category", Category(self.category))
            except ValueError:
                raise ValidationError(f"Categoría inválida: {self.category!r}") from None

        object.__setattr__(
            self, "conditions", frozenset(_to_condition(c) for c in self.conditions or ())
        )
        object.__setattr__(
            self,
            "tags",
            frozenset(normalize_text(t) for t in self.tags or () if normalize_text(t)),
        )

        equals = {
            key: normalize_text(str(value))
            for key, value in (self.attribute_equals or {}).items()
            if value is not None and normalize_text(str(value))
        }
        object.__setattr__(self, "attribute_equals", equals)
        object.__setattr__(self, "attribute_min", _parse_bounds(self.attribute_min))
        object.__setattr__(self, "attribute_max", _parse_bounds(self.attribute_max))

        for key, low in self.attribute_min.items():
            high = self.attribute_max.get(key)
            if high is not None and low > high:
                raise ValidationError(
                    f"Rango inválido para {key}: mínimo {low} > máximo {high}"
                )

    def for_category(self, category: Union[Category, str]) -> "FilterSpec":
        """Copia de la especificación restringida a una categoría."""
        return replace(self, category=category)

    @property
    def is_empty(self) -> bool:
        return not (
            self.term.strip()
            or self.category
            or self.min_price is not None
            or self.max_price is not None
            or self.location.strip()
            or self.conditions
            or self.tags
            or self.compatibility.strip()
            or self.attribute_equals
            or self.attribute_min
            or self.attribute_max
        )


def matches(listing: Listing, spec: FilterSpec) -> bool:
    """
    Evalúa si un listing cumple la especificación.

    Función pura: no modifica el listing ni la especificación.
    """
    # Categoría
    if spec.category is not None and listing.category != spec.category:
        return False

    # Busca texto en título o ubicación
    term = normalize_text(spec.term)
    if term and not (_contains(listing.title, term) or _contains(listing.location, term)):
        return False

    # Precio
    if spec.min_price is not None and listing.price < spec.min_price:
        return False
    if spec.max_price is not None and listing.price > spec.max_price:
        return False

    # Ubicación
    location = normalize_text(spec.location)
    if location and not _contains(listing.location, location):
        return False

    # Condición (un listing sin condición no cumple)
    if spec.conditions and listing.condition not in spec.conditions:
        return False

    # Tags: alcanza con que uno esté contenido en el atributo de la categoría
    if spec.tags:
        tag_value = normalize_text(listing.tag_value)
        if not tag_value or not any(tag in tag_value for tag in spec.tags):
            return False

    # Compatibilidad: título o descripción
    compatibility = normalize_text(spec.compatibility)
    if compatibility and not (
        _contains(listing.title, compatibility)
        or _contains(listing.description, compatibility)
    ):
        return False

    # Atributos de categoría: igualdad y rangos inclusivos
    for key, wanted in spec.attribute_equals.items():
        value = listing.attributes.get(key)
        if value is None or normalize_text(str(value)) != wanted:
            return False
    for key, low in spec.attribute_min.items():
        number = parse_decimal(listing.attributes.get(key))
        if number is None or number < low:
            return False
    for key, high in spec.attribute_max.items():
        number = parse_decimal(listing.attributes.get(key))
        if number is None or number > high:
            return False

    return True


def filter_listings(listings: Iterable[Listing], spec: FilterSpec) -> list[Listing]:
    """Aplica matches() a una colección, preservando el orden."""
    return [listing for listing in listings if matches(listing, spec)]
