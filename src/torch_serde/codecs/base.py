from abc import ABC, abstractmethod
from typing import Any

class Codec(ABC):
    """
    Converts a value to a serializer-agnostic encoded form and back.
    Codecs hold no mutable state, so one instance can be shared freely.
    """
    @abstractmethod
    def encode(self, value: Any) -> Any:
        ...

    @abstractmethod
    def decode(self, encoded: Any) -> Any:
        ...
