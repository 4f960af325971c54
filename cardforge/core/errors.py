"""Exceptions raised at the boundary of the engine (file import, settings)."""


class CardforgeError(Exception):
    """Base class for all errors raised by cardforge."""


class TemplateFormatError(CardforgeError):
    """A template JSON document could not be turned into a Template."""


class SettingsError(CardforgeError):
    """The editor settings file is not usable."""


class CardDataError(CardforgeError):
    """A card list document could not be turned into CardData records."""
