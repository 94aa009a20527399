from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from wave_gateway.core.config import Settings


logger = logging.getLogger("wave_gateway.services.business_config")


class BusinessKey(str, Enum):
    MANNA = "manna"
    BAKO = "bako"
    SOCIALION = "socialion"

    @classmethod
    def parse(cls, value: Any) -> Optional["BusinessKey"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        for member in cls:
            if member.value == value:
                return member
        return None


class UnknownBusinessKey(ValueError):
    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Unknown business key: {key!r}")


class MissingConfiguration(RuntimeError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name} is not set")


class BusinessEntry(str, Enum):
    BUSINESS_ID = "WAVE_BUSINESS_ID"
    ANCHOR_ACCOUNT = "WAVE_ANCHOR_ACCOUNT_ID"
    SALES_ACCOUNT = "WAVE_SALES_ACCOUNT_ID"
    GENERIC_PRODUCT = "WAVE_GENERIC_PRODUCT_ID"
    LINE_ITEM_ACCOUNT = "WAVE_LINE_ITEM_ACCOUNT_ID"


@dataclass(frozen=True)
class BusinessConfig:
    key: BusinessKey
    business_id: str
    anchor_account_id: Optional[str] = None
    sales_account_id: Optional[str] = None
    generic_product_id: Optional[str] = None
    line_item_account_id: Optional[str] = None


_CONFIG_FIELDS: dict[BusinessEntry, str] = {
    BusinessEntry.BUSINESS_ID: "business_id",
    BusinessEntry.ANCHOR_ACCOUNT: "anchor_account_id",
    BusinessEntry.SALES_ACCOUNT: "sales_account_id",
    BusinessEntry.GENERIC_PRODUCT: "generic_product_id",
    BusinessEntry.LINE_ITEM_ACCOUNT: "line_item_account_id",
}


def _env_suffix(key: BusinessKey) -> str:
    if key is BusinessKey.MANNA:
        return "MANNA"
    if key is BusinessKey.BAKO:
        return "BAKO"
    if key is BusinessKey.SOCIALION:
        return "SOCIALION"
    raise UnknownBusinessKey(key)


def env_name(entry: BusinessEntry, key: BusinessKey) -> str:
    return f"{entry.value}_{_env_suffix(key)}"


def resolve_business(
    settings: Settings,
    key: Any,
    *entries: BusinessEntry,
) -> BusinessConfig:
    """Resolve the configured Wave identifiers for ``key``.

    The business id is always resolved; ``entries`` lists the additional
    identifiers the calling operation needs. Every requested entry is read
    before the config is built, so callers either get a complete
    :class:`BusinessConfig` or a :class:`MissingConfiguration` naming the
    first absent environment variable.
    """
    business_key = BusinessKey.parse(key)
    if business_key is None:
        raise UnknownBusinessKey(key)

    requested = [BusinessEntry.BUSINESS_ID]
    requested.extend(entry for entry in entries if entry not in requested)

    values: dict[str, str] = {}
    for entry in requested:
        name = env_name(entry, business_key)
        value = settings.read_entry(name)
        if value is None:
            logger.error(
                "business_configuration_missing",
                extra={"business_key": business_key.value, "entry": name},
            )
            raise MissingConfiguration(name)
        values[_CONFIG_FIELDS[entry]] = value

    return BusinessConfig(key=business_key, **values)


def find_missing_entries(settings: Settings) -> list[str]:
    missing: list[str] = []
    for key in BusinessKey:
        for entry in BusinessEntry:
            name = env_name(entry, key)
            if settings.read_entry(name) is None:
                missing.append(name)
    return missing
