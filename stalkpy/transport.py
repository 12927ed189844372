from typing import Protocol

class Transport(Protocol):
    def write(self, data: bytes) -> None:
        ...

    def read(self, length: int) -> bytes:
        ...

    def get_line(self) -> str:
        ...

    def disconnect(self) -> None:
        ...
