"""特性开关。"""
from __future__ import annotations

from enum import Enum
from typing import Iterable

from sf_rdf_export.common.exceptions import ErrorCode, ValidationError


class FeatureToggle(str, Enum):
    NO_BULK_PROTOCOL = "no-bulk-protocol"


class FeatureToggles:
    """不可变的特性开关集合。

    参数：
        toggles：开关枚举或其字符串形式，例如 ``["no-bulk-protocol"]``；无法识别的取值会被拒绝。
    """

    __slots__ = ("_enabled",)

    def __init__(self, toggles: Iterable[FeatureToggle | str] = ()) -> None:
        enabled: set[FeatureToggle] = set()
        for toggle in toggles:
            enabled.add(self._parse(toggle))
        self._enabled = frozenset(enabled)

    def contains(self, toggle: FeatureToggle) -> bool:
        return toggle in self._enabled

    __contains__ = contains

    @property
    def bulk_protocol_disabled(self) -> bool:
        return FeatureToggle.NO_BULK_PROTOCOL in self._enabled

    def __iter__(self):
        return iter(sorted(self._enabled, key=lambda item: item.value))

    def __repr__(self) -> str:
        return f"FeatureToggles({[toggle.value for toggle in self]!r})"

    @staticmethod
    def _parse(toggle: FeatureToggle | str) -> FeatureToggle:
        if isinstance(toggle, FeatureToggle):
            return toggle
        token = str(toggle).strip()
        for candidate in FeatureToggle:
            # 兼容枚举名写法，例如 No_Bulk_Protocol
            if token == candidate.value or token.replace("_", "-").lower() == candidate.value:
                return candidate
        raise ValidationError(
            ErrorCode.UNKNOWN_FEATURE_TOGGLE,
            f"Unknown feature toggle: {toggle}",
            details={"allowed": [item.value for item in FeatureToggle]},
        )
