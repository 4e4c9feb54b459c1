"""Variant combination generator.

Builds the colors x sizes x decorations product of a customizable product and
drops the combinations a product already carries. Everything here is pure:
callers fetch the live variants and perform the Shopify mutations.
"""
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

DEFAULT_PRICE = "0.00"
DEFAULT_TITLE = "Default"
TITLE_SEPARATOR = " / "
SIGNATURE_SEPARATOR = "|"


class OptionAxis(str, Enum):
    COLOR = "Color"
    SIZE = "Size"
    DECORATION = "Decoration"


class OptionValue(BaseModel):
    axis: OptionAxis
    value: str


class CandidateVariant(BaseModel):
    option_values: List[OptionValue]
    title: str
    price: str = DEFAULT_PRICE

    def values(self) -> List[str]:
        return [ov.value for ov in self.option_values]

    def to_bulk_input(self, inventory_policy: str = "DENY") -> dict:
        """Shape used by productVariantsBulkCreate."""
        return {
            "optionValues": [{"optionName": ov.axis.value, "name": ov.value} for ov in self.option_values],
            "price": self.price,
            "inventoryPolicy": inventory_policy,
        }


class GenerationResult(BaseModel):
    created: List[CandidateVariant] = Field(default_factory=list)
    skipped: List[CandidateVariant] = Field(default_factory=list)
    skipped_count: int = 0
    skipped_signatures: List[str] = Field(default_factory=list)

    @property
    def all_duplicates(self) -> bool:
        return not self.created and self.skipped_count > 0


def normalize_price(price: Optional[str]) -> str:
    s = str(price if price is not None else "").strip()
    if not s:
        return DEFAULT_PRICE
    try:
        d = Decimal(s)
    except (InvalidOperation, ValueError):
        return DEFAULT_PRICE
    if not d.is_finite() or d <= 0:
        return DEFAULT_PRICE
    return s


def combination_count(colors: Sequence[str], sizes: Sequence[str], decorations: Sequence[str]) -> int:
    """Number of candidates generate_combinations yields (empty axes count once)."""
    if not (colors or sizes or decorations):
        return 0
    return max(len(colors), 1) * max(len(sizes), 1) * max(len(decorations), 1)


def generate_combinations(
    colors: Sequence[str],
    sizes: Sequence[str],
    decorations: Sequence[str],
    price: Optional[str] = None,
) -> List[CandidateVariant]:
    eff_price = normalize_price(price)
    out: List[CandidateVariant] = []
    for color in (list(colors) or [""]):
        for size in (list(sizes) or [""]):
            for decoration in (list(decorations) or [""]):
                option_values = [
                    OptionValue(axis=axis, value=value)
                    for axis, value in (
                        (OptionAxis.COLOR, color),
                        (OptionAxis.SIZE, size),
                        (OptionAxis.DECORATION, decoration),
                    )
                    if value != ""
                ]
                if not option_values:
                    continue
                title = TITLE_SEPARATOR.join(ov.value for ov in option_values) or DEFAULT_TITLE
                out.append(CandidateVariant(option_values=option_values, title=title, price=eff_price))
    return out


def signature(values: Iterable[str]) -> str:
    # Value-only on purpose: "Large" as a color and "Large" as a size collide.
    return SIGNATURE_SEPARATOR.join(sorted((v or "").lower().strip() for v in values))


def variant_signature(candidate: CandidateVariant) -> str:
    return signature(candidate.values())


def signature_from_selected_options(selected_options: Iterable[dict]) -> str:
    """Signature of a live Shopify variant from its selectedOptions [{name, value}]."""
    return signature((opt or {}).get("value") or "" for opt in (selected_options or []))


def existing_signatures(variants: Iterable[dict]) -> set:
    return {signature_from_selected_options((v or {}).get("selectedOptions") or []) for v in (variants or [])}


def filter_duplicates(candidates: Sequence[CandidateVariant], existing: Iterable[str]) -> GenerationResult:
    known = set(existing or ())
    result = GenerationResult()
    for candidate in candidates:
        sig = variant_signature(candidate)
        if sig in known:
            result.skipped.append(candidate)
            result.skipped_signatures.append(sig)
        else:
            result.created.append(candidate)
    result.skipped_count = len(result.skipped)
    return result
