from __future__ import annotations

import secrets


class TokenIdProvider:
    def __init__(self, prefix: str, length: int) -> None:
        if length < 1:
            raise ValueError("Id length must be positive")
        self._prefix = prefix
        self._length = length

    def generate(self) -> str:
        token = secrets.token_hex(self._length)
        return f"{self._prefix}_{token[: self._length]}"
