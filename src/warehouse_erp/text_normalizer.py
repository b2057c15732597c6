"""Vietnamese diacritic stripping for PDF-safe text.

The PDF renderer uses the standard base-14 fonts, which cannot draw most
Vietnamese letters. Text bound for a PDF is therefore folded to plain Latin
through a fixed character table. Characters outside the table are returned
unchanged.
"""

from __future__ import annotations

from typing import Mapping

# Every precomposed Vietnamese letter, grouped by the base letter it folds to.
_LOWERCASE_GROUPS: Mapping[str, str] = {
    "a": "àáảãạăằắẳẵặâầấẩẫậ",
    "d": "đ",
    "e": "èéẻẽẹêềếểễệ",
    "i": "ìíỉĩị",
    "o": "òóỏõọôồốổỗộơờớởỡợ",
    "u": "ùúủũụưừứửữự",
    "y": "ỳýỷỹỵ",
}

VIETNAMESE_CHAR_MAP: Mapping[str, str] = {
    **{char: base for base, chars in _LOWERCASE_GROUPS.items() for char in chars},
    **{char.upper(): base.upper() for base, chars in _LOWERCASE_GROUPS.items() for char in chars},
}

_TRANSLATION = str.maketrans(dict(VIETNAMESE_CHAR_MAP))


def normalize(text: str) -> str:
    """Replace Vietnamese diacritic letters with their unaccented base letter.

    >>> normalize("Tổng số bản ghi")
    'Tong so ban ghi'
    """

    return text.translate(_TRANSLATION)


__all__ = ["VIETNAMESE_CHAR_MAP", "normalize"]
