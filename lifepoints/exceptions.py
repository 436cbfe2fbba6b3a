"""Error kinds raised by Life Points managers.

Errors carry a translation key plus placeholders so a surrounding application
can render localized messages. The English rendering from
const.TRANSLATIONS is used as the exception message.
"""

from __future__ import annotations

from . import const


class LifePointsError(Exception):
    """Base error for all Life Points operations.

    Attributes:
        translation_key: The TRANS_KEY_* constant describing the failure
        translation_placeholders: Values substituted into the message template
    """

    def __init__(
        self,
        translation_key: str,
        translation_placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize LifePointsError.

        Args:
            translation_key: The TRANS_KEY_* constant for the error message
            translation_placeholders: Optional dict for message placeholders
        """
        self.translation_key = translation_key
        self.translation_placeholders = translation_placeholders or {}
        template = const.TRANSLATIONS.get(translation_key, translation_key)
        try:
            message = template.format(**self.translation_placeholders)
        except KeyError:
            message = template
        super().__init__(message)


class NotFoundError(LifePointsError):
    """Referenced habit, attempt or game state does not exist."""

    def __init__(self, entity_type: str, name: str) -> None:
        """Initialize NotFoundError.

        Args:
            entity_type: One of the const.LABEL_* values
            name: Identifier of the missing record
        """
        self.entity_type = entity_type
        self.name = name
        super().__init__(
            const.TRANS_KEY_ERROR_NOT_FOUND,
            {"entity_type": entity_type, "name": name},
        )


class InvalidStateError(LifePointsError):
    """Operation is not allowed in the current game or attempt state."""


class StorageError(LifePointsError):
    """The storage document could not be written."""
