from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

REASON_MESSAGES: Dict[str, str] = {
    "RECIPE_FOUND": "Recipe found within acceptable color difference.",
    "NO_CANDIDATES": "No ink candidates available for the requested options.",
    "COLOR_DIFFERENCE_TOO_LARGE": "Color difference is too large to reach.",
    "TAC_LIMIT_REACHED": "Total area coverage headroom is exhausted.",
    "TAC_LIMIT_EXCEEDED": "Recipe exceeds the total area coverage limit.",
    "NO_SUITABLE_INKS": "No catalog ink moves the color in the needed direction.",
    "CORRECTION_POSSIBLE": "Correction is possible with catalog inks.",
    "OUT_OF_GAMUT": "Target color is outside the catalog gamut.",
    "REMAKE_RECIPE": "Remake the recipe from scratch.",
    "ADD_SPECIAL_INKS": "Add special inks to reach the target.",
    "APPLY_CORRECTION": "Apply the suggested correction inks.",
    "CHECK_GAMUT": "Check whether the target is printable with this ink set.",
    "ADD_INKS_TO_CATALOG": "Add inks to the catalog or relax the filters.",
}


def split_reason(reason: str) -> Tuple[str, str]:
    if ":" in reason:
        code, detail = reason.split(":", 1)
        return code, detail
    return reason, ""


def reason_message(reason: str) -> str:
    code, detail = split_reason(reason)
    base = REASON_MESSAGES.get(code, code)
    return f"{base} ({detail})" if detail else base


def reason_messages(reasons: Iterable[str]) -> List[str]:
    return [reason_message(r) for r in reasons]
