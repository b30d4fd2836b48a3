"""Default fortunes baked into the slices."""

from typing import List, Sequence

MAX_SLICES = 12
FILLER_FORTUNE = "Luck (Късмет)"

DEFAULT_FORTUNES = [
    "Health (Здраве)",
    "Love (Любов)",
    "Travel (Пътуване)",
    "New Car (Нова кола)",
    "New House (Нова къща)",
    "Baby (Бебе)",
    "Promotion (Повишение)",
    "Wedding (Сватба)",
    "Lottery Win (Печалба от тото)",
    "Good Friends (Добри приятели)",
    "Wisdom (Мъдрост)",
    "Lazy Year (Мързелива година)",
]


def pad_fortunes(fortunes: Sequence[str], count: int = MAX_SLICES) -> List[str]:
    """Copy of *fortunes* extended with the filler up to *count* entries."""
    padded = list(fortunes)
    while len(padded) < count:
        padded.append(FILLER_FORTUNE)
    return padded
