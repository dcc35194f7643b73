# pycronqueue/serialization/base.py
from abc import ABC, abstractmethod
from typing import Any


class BaseSerializer(ABC):
    @abstractmethod
    def serialize_payload(self, payload: Any) -> str: ...

    @abstractmethod
    def deserialize_payload(self, data: str) -> Any:
        """Rebuilds a payload object.

        Raises:
            DeserializationError: if the payload cannot be reconstructed.
        """
