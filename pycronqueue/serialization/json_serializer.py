# pycronqueue/serialization/json_serializer.py
import importlib
import json
from typing import Any

from pycronqueue.common.exceptions import DeserializationError
from pycronqueue.serialization.base import BaseSerializer


class JsonSerializer(BaseSerializer):
    """
    Stores a payload object as its importable class path plus its instance
    attributes. Attributes must be JSON-serializable.
    """

    def serialize_payload(self, payload: Any) -> str:
        cls = type(payload)
        if "<locals>" in cls.__qualname__:
            raise TypeError(f"Cannot serialize locally defined class {cls.__qualname__}")
        return json.dumps(
            {
                "class": f"{cls.__module__}:{cls.__qualname__}",
                "attributes": vars(payload),
            }
        )

    def deserialize_payload(self, data: str) -> Any:
        try:
            document = json.loads(data)
            module_name, _, qualname = document["class"].partition(":")
            target = importlib.import_module(module_name)
            for part in qualname.split("."):
                target = getattr(target, part)
            payload = target.__new__(target)
            payload.__dict__.update(document.get("attributes") or {})
            return payload
        except (ImportError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise DeserializationError(f"Could not deserialize payload: {e}") from e
