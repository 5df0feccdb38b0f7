"""Store de dados do comprador em memória (dev/testes)."""

from __future__ import annotations

from collections.abc import Mapping

from vnova_voice.domain.protocols.user_info import USER_INFO_FIELDS, UserInfoStoreProtocol


class InMemoryUserInfoStore(UserInfoStoreProtocol):
    """Merge raso; chaves fora de USER_INFO_FIELDS são ignoradas."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self) -> dict[str, str]:
        return dict(self._data)

    def update(self, partial: Mapping[str, str]) -> None:
        for key, value in partial.items():
            if key in USER_INFO_FIELDS:
                self._data[key] = value

    def clear(self) -> None:
        self._data.clear()
