# architects/names.py
"""
Legacy architect name handling.

Records that predate the composition hierarchy keep every credited architect
in one string joined by the full-width space (U+3000). Those names are split
here and matched by partial containment in either direction.
"""

from typing import Iterable, List

from config.constant import FULL_WIDTH_SPACE


def split_legacy_names(raw: str) -> List[str]:
    """Split on U+3000, trim, and drop empty segments."""
    if not raw:
        return []
    return [seg.strip() for seg in raw.split(FULL_WIDTH_SPACE) if seg.strip()]


def names_overlap(selected: str, candidate: str) -> bool:
    """
    Bidirectional containment, case-insensitive.

    "安藤" matches "安藤忠雄", and "安藤忠雄建築研究所" matches "安藤忠雄".
    """
    a = (selected or "").strip().lower()
    b = (candidate or "").strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def legacy_name_matches(raw: str, selected: Iterable[str]) -> bool:
    """True if any selected name overlaps any legacy segment of ``raw``."""
    segments = split_legacy_names(raw)
    return any(names_overlap(s, seg) for s in selected for seg in segments)


__all__ = [
    "split_legacy_names",
    "names_overlap",
    "legacy_name_matches",
]
