from typing import Protocol


class SMSSender(Protocol):
    async def send(self, phone: str, message: str) -> None:
        ...
