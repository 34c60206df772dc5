from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ConversionConfig:
    """
    Settings for one conversion.

    The two date patterns are ``strftime`` patterns applied to cells whose
    style classifies them as a date or a date with time of day.
    """

    delimiter: str = ";"
    quote: str = '"'
    escape: str = "\\"
    date_format: str = "%d.%m.%Y"
    datetime_format: str = "%d.%m.%Y %H:%M"
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        for name in ("delimiter", "quote", "escape"):
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")


DEFAULT_CONFIG = ConversionConfig()
