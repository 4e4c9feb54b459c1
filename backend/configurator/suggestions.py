from typing import Iterable, List, Sequence

SUGGESTION_LIMIT = 8

COMMON_COLORS = [
    "Red", "Blue", "Green", "Yellow", "Orange", "Purple", "Pink", "Brown",
    "Black", "White", "Gray", "Navy", "Maroon", "Teal", "Lime", "Olive",
    "Silver", "Gold", "Beige", "Tan", "Coral", "Salmon", "Turquoise", "Violet",
]

COMMON_SIZES = [
    "XS", "S", "M", "L", "XL", "2XL", "3XL", "4XL",
    "Small", "Medium", "Large", "Extra Large",
    "Youth S", "Youth M", "Youth L", "One Size",
]

COMMON_DECORATIONS = [
    "Screen Print", "Embroidery", "Heat Transfer", "Digital Print", "DTG",
    "Vinyl", "Sublimation", "Laser Engraving", "Patch", "Puff Print",
]

COMMON_SUGGESTIONS = {
    "color": COMMON_COLORS,
    "size": COMMON_SIZES,
    "decoration": COMMON_DECORATIONS,
}


def filter_suggestions(
    text: str,
    existing: Sequence[str],
    suggestions: Sequence[str],
    option_type: str = "option",
    limit: int = SUGGESTION_LIMIT,
) -> List[dict]:
    """Combobox entries for `text`: existing matches, then suggestions, then an "add new" entry.

    The cap applies to the matched entries only so the "add new" entry is never pushed out.
    """
    raw = (text or "").strip()
    if not raw:
        return []
    term = raw.lower()
    existing_lower = {(e or "").lower() for e in existing or []}

    matched: List[dict] = []
    for value in existing or []:
        low = (value or "").lower()
        if term in low and low != term:
            matched.append({"type": "existing", "value": value, "label": value})
    for value in suggestions or []:
        low = (value or "").lower()
        if term in low and low != term and low not in existing_lower:
            matched.append({"type": "suggestion", "value": value, "label": value})

    out = matched[:limit]
    if term not in existing_lower:
        out.append({"type": "new", "value": raw, "label": f'Add "{raw}" as new {option_type}'})
    return out


def collect_option_values(products: Iterable[dict]) -> dict:
    """Unique option values across products, bucketed by option name."""
    colors: set = set()
    sizes: set = set()
    decorations: set = set()
    for product in products or []:
        for option in (product or {}).get("options") or []:
            name = ((option or {}).get("name") or "").lower()
            if name == "color":
                bucket = colors
            elif name == "size":
                bucket = sizes
            elif name in ("decoration", "decorations"):
                bucket = decorations
            else:
                continue
            for value in option.get("values") or []:
                if isinstance(value, str) and value.strip():
                    bucket.add(value.strip())
    return {
        "existing_colors": sorted(colors),
        "existing_sizes": sorted(sizes),
        "existing_decorations": sorted(decorations),
    }
