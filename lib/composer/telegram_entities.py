"""
Conversion between python-telegram-bot message entities and composer entities.

Both sides measure offsets in UTF-16 code units, so ranges are copied as is.
"""

import logging
from collections.abc import Sequence
from typing import List, Optional

import telegram
from telegram.constants import MessageEntityType as TgEntityType

from .api_formatted import ApiFormattedText, MessageEntity, MessageEntityType

logger = logging.getLogger(__name__)

ENTITY_TYPE_BY_TELEGRAM = {
    TgEntityType.BOLD: MessageEntityType.BOLD,
    TgEntityType.ITALIC: MessageEntityType.ITALIC,
    TgEntityType.UNDERLINE: MessageEntityType.UNDERLINE,
    TgEntityType.STRIKETHROUGH: MessageEntityType.STRIKE,
    TgEntityType.SPOILER: MessageEntityType.SPOILER,
    TgEntityType.CODE: MessageEntityType.CODE,
    TgEntityType.PRE: MessageEntityType.PRE,
    TgEntityType.TEXT_LINK: MessageEntityType.TEXT_URL,
    TgEntityType.TEXT_MENTION: MessageEntityType.MENTION_NAME,
    TgEntityType.CUSTOM_EMOJI: MessageEntityType.CUSTOM_EMOJI,
    TgEntityType.BLOCKQUOTE: MessageEntityType.BLOCKQUOTE,
    TgEntityType.EXPANDABLE_BLOCKQUOTE: MessageEntityType.BLOCKQUOTE,
    TgEntityType.MENTION: MessageEntityType.MENTION,
    TgEntityType.HASHTAG: MessageEntityType.HASHTAG,
    TgEntityType.CASHTAG: MessageEntityType.CASHTAG,
    TgEntityType.BOT_COMMAND: MessageEntityType.BOT_COMMAND,
    TgEntityType.URL: MessageEntityType.URL,
    TgEntityType.EMAIL: MessageEntityType.EMAIL,
    TgEntityType.PHONE_NUMBER: MessageEntityType.PHONE,
}
TELEGRAM_BY_ENTITY_TYPE = {
    entityType: tgType
    for tgType, entityType in ENTITY_TYPE_BY_TELEGRAM.items()
    if tgType != TgEntityType.EXPANDABLE_BLOCKQUOTE
}


def fromTelegramEntity(entity: telegram.MessageEntity) -> MessageEntity:
    """Convert Telegram entity, unsupported types map to MessageEntityUnknown.

    Raises:
        ValueError: If the entity is not an instance of MessageEntity
    """
    if not isinstance(entity, telegram.MessageEntity):
        raise ValueError("entity must be an instance of MessageEntity")

    entityType = ENTITY_TYPE_BY_TELEGRAM.get(entity.type, None)
    if entityType is None:
        logger.warning(f"Unknown entity type: {entity.type} in {entity}, use {MessageEntityType.UNKNOWN.value}")
        entityType = MessageEntityType.UNKNOWN

    canCollapse: Optional[bool] = None
    match entity.type:
        case TgEntityType.BLOCKQUOTE:
            canCollapse = False
        case TgEntityType.EXPANDABLE_BLOCKQUOTE:
            canCollapse = True

    return MessageEntity(
        entityType,
        entity.offset,
        entity.length,
        language=entity.language,
        url=entity.url,
        userId=str(entity.user.id) if entity.user else None,
        documentId=entity.custom_emoji_id,
        canCollapse=canCollapse,
    )


def toTelegramEntity(entity: MessageEntity) -> Optional[telegram.MessageEntity]:
    """Convert entity to Telegram entity, None if Telegram has no such entity."""
    if entity.type == MessageEntityType.BLOCKQUOTE and entity.canCollapse:
        tgType = TgEntityType.EXPANDABLE_BLOCKQUOTE
    else:
        tgType = TELEGRAM_BY_ENTITY_TYPE.get(entity.type, None)
    if tgType is None:
        logger.warning(f"Entity {entity} has no Telegram counterpart, skipping")
        return None

    user: Optional[telegram.User] = None
    if tgType == TgEntityType.TEXT_MENTION:
        if entity.userId is None or not entity.userId.lstrip("-").isdigit():
            logger.warning(f"Mention {entity} has no numeric user id, skipping")
            return None
        user = telegram.User(id=int(entity.userId), first_name="", is_bot=False)

    return telegram.MessageEntity(
        type=tgType,
        offset=entity.offset,
        length=entity.length,
        url=entity.url if tgType == TgEntityType.TEXT_LINK else None,
        user=user,
        language=entity.language if tgType == TgEntityType.PRE else None,
        custom_emoji_id=entity.documentId if tgType == TgEntityType.CUSTOM_EMOJI else None,
    )


def fromTelegramMessage(text: Optional[str], entities: Sequence[telegram.MessageEntity]) -> ApiFormattedText:
    """Build formatted text from Telegram message text (or caption) and its entities."""
    converted = [fromTelegramEntity(entity) for entity in entities]
    return ApiFormattedText(text or "", converted or None)


def toTelegramEntities(formatted: ApiFormattedText) -> List[telegram.MessageEntity]:
    ret: List[telegram.MessageEntity] = []
    for entity in formatted.entities or []:
        tgEntity = toTelegramEntity(entity)
        if tgEntity is not None:
            ret.append(tgEntity)
    return ret
