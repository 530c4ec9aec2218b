"""
Flat formatted text representation used on the wire.

`ApiFormattedText` is a plain string plus formatting entities whose offsets
and lengths are measured in UTF-16 code units. Entity type strings are part
of the messaging protocol and must stay as they are.
"""

import logging
from collections.abc import Sequence
from enum import StrEnum
from typing import Any, Dict, List, Optional, Self

from .errors import ConversionError

logger = logging.getLogger(__name__)


class MessageEntityType(StrEnum):
    """Entity types of the messaging protocol."""

    BOLD = "MessageEntityBold"
    BLOCKQUOTE = "MessageEntityBlockquote"
    BOT_COMMAND = "MessageEntityBotCommand"
    CASHTAG = "MessageEntityCashtag"
    CODE = "MessageEntityCode"
    EMAIL = "MessageEntityEmail"
    HASHTAG = "MessageEntityHashtag"
    ITALIC = "MessageEntityItalic"
    MENTION_NAME = "MessageEntityMentionName"
    MENTION = "MessageEntityMention"
    PHONE = "MessageEntityPhone"
    PRE = "MessageEntityPre"
    STRIKE = "MessageEntityStrike"
    TEXT_URL = "MessageEntityTextUrl"
    URL = "MessageEntityUrl"
    UNDERLINE = "MessageEntityUnderline"
    SPOILER = "MessageEntitySpoiler"
    CUSTOM_EMOJI = "MessageEntityCustomEmoji"
    UNKNOWN = "MessageEntityUnknown"

    @classmethod
    def fromStr(cls, value: str) -> "MessageEntityType":
        """Get entity type by its wire name, unknown names map to UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown entity type '{value}', using {cls.UNKNOWN.value}")
            return cls.UNKNOWN


BLOCK_ENTITY_TYPES = frozenset({MessageEntityType.PRE, MessageEntityType.BLOCKQUOTE})


class MessageEntity:
    """Formatting entity over a range of the text.

    Type-specific fields:
        language: code language of a pre entity
        url: target of a text url entity
        userId: mentioned user of a mention name entity
        documentId: document of a custom emoji entity
        canCollapse: whether a blockquote may be collapsed
    """

    __slots__ = ("type", "offset", "length", "language", "url", "userId", "documentId", "canCollapse")

    def __init__(
        self,
        type: MessageEntityType,
        offset: int,
        length: int,
        *,
        language: Optional[str] = None,
        url: Optional[str] = None,
        userId: Optional[str] = None,
        documentId: Optional[str] = None,
        canCollapse: Optional[bool] = None,
    ):
        self.type = MessageEntityType(type)
        self.offset = offset
        self.length = length
        self.language = language
        self.url = url
        self.userId = userId
        self.documentId = documentId
        self.canCollapse = canCollapse

    @property
    def end(self) -> int:
        return self.offset + self.length

    def copy(self, **kwargs: Any) -> Self:
        """Copy entity replacing the given fields."""
        data = {key: getattr(self, key) for key in self.__slots__}
        data.update(kwargs)
        entityType = data.pop("type")
        offset = data.pop("offset")
        length = data.pop("length")
        return self.__class__(entityType, offset, length, **data)

    @classmethod
    def fromDict(cls, data: Dict[str, Any]) -> Self:
        """Create an entity from its wire dictionary.

        Raises:
            ConversionError: If type, offset or length are missing or malformed
        """
        try:
            entityType = MessageEntityType.fromStr(str(data["type"]))
            offset = int(data["offset"])
            length = int(data["length"])
        except (KeyError, TypeError, ValueError) as e:
            raise ConversionError(f"Malformed entity {data}: {e}") from e

        userId = data.get("userId", None)
        documentId = data.get("documentId", None)
        return cls(
            entityType,
            offset,
            length,
            language=data.get("language", None),
            url=data.get("url", None),
            userId=str(userId) if userId is not None else None,
            documentId=str(documentId) if documentId is not None else None,
            canCollapse=data.get("canCollapse", None),
        )

    def toDict(self) -> Dict[str, Any]:
        """Convert the entity to its wire dictionary, unset fields are omitted."""
        ret: Dict[str, Any] = {
            "type": self.type.value,
            "offset": self.offset,
            "length": self.length,
        }
        for key in ("language", "url", "userId", "documentId", "canCollapse"):
            value = getattr(self, key)
            if value is not None:
                ret[key] = value
        return ret

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MessageEntity):
            return NotImplemented
        return self.toDict() == other.toDict()

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.toDict().items())))

    def __repr__(self) -> str:
        return f"MessageEntity({self.toDict()})"


class ApiFormattedText:
    """Text with formatting entities, `entities` is None when there are none."""

    __slots__ = ("text", "entities")

    def __init__(self, text: str, entities: Optional[Sequence[MessageEntity]] = None):
        self.text = text
        self.entities: Optional[List[MessageEntity]] = list(entities) if entities is not None else None

    @classmethod
    def fromDict(cls, data: Dict[str, Any]) -> Self:
        """Create formatted text from its wire dictionary.

        Raises:
            ConversionError: If the text is missing or entities are malformed
        """
        if not isinstance(data, dict) or not isinstance(data.get("text", None), str):
            raise ConversionError("Formatted text must be a dict with a string 'text' field")

        rawEntities = data.get("entities", None)
        if rawEntities is None:
            return cls(data["text"])
        if not isinstance(rawEntities, list):
            raise ConversionError("'entities' must be a list")
        return cls(data["text"], [MessageEntity.fromDict(entity) for entity in rawEntities])

    def toDict(self) -> Dict[str, Any]:
        ret: Dict[str, Any] = {"text": self.text}
        if self.entities is not None:
            ret["entities"] = [entity.toDict() for entity in self.entities]
        return ret

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiFormattedText):
            return NotImplemented
        return self.toDict() == other.toDict()

    def __repr__(self) -> str:
        return f"ApiFormattedText({self.toDict()})"
