"""
Conversion between Python string indices and UTF-16 code unit offsets.

Entity offsets on the wire count UTF-16 code units, characters outside the
Basic Multilingual Plane take two of them.
"""

from typing import Dict, List, Optional

UTF16_ENCODING = "utf-16-le"


def utf16Length(text: str) -> int:
    return len(text.encode(UTF16_ENCODING, "surrogatepass")) // 2


class Utf16Index:
    """Offset table for one string."""

    __slots__ = ("text", "offsets", "_indexByOffset")

    def __init__(self, text: str):
        self.text = text
        # offsets[i] is the UTF-16 offset of text[i], the last entry is the total length
        self.offsets: List[int] = []
        current = 0
        for char in text:
            self.offsets.append(current)
            current += 2 if ord(char) > 0xFFFF else 1
        self.offsets.append(current)
        self._indexByOffset: Dict[int, int] = {offset: index for index, offset in enumerate(self.offsets)}

    @property
    def length(self) -> int:
        return self.offsets[-1]

    def toStrIndex(self, utf16Offset: int) -> Optional[int]:
        """Get string index for UTF-16 offset, None if it is out of range or splits a surrogate pair."""
        return self._indexByOffset.get(utf16Offset, None)

    def toUtf16(self, index: int) -> int:
        return self.offsets[max(0, min(index, len(self.text)))]
