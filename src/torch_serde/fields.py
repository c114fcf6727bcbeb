"""
pydantic field types backed by the codecs.

Annotate a model field with one of these types and pydantic drives the codec:
``model_dump``/``model_dump_json`` call ``encode``, ``model_validate``/
``model_validate_json`` call ``decode``::

    class Example(BaseModel):
        tensor: TensorField
        kind: DTypeField
        device: DeviceField
        reduction: ReductionField

Values may also be given directly (a tensor, a torch.dtype, a torch.device, a
Reduction); those are taken as they are.
"""
from typing import Annotated, Any, Callable, Dict, Optional

import torch
from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic_core import core_schema

from .codecs import Codec, DeviceCodec, Kind, KindCodec, Reduction, ReductionCodec, TensorCodec, TensorRecord
from .codecs.device import DeviceLike

class _CodecAnnotation:
    """
    Binds a codec to a field: already-decoded values pass through `accept`,
    everything else goes through `codec.decode`.
    """
    def __init__(
        self,
        codec: Codec,
        accept: Callable[[Any], Optional[Any]],
        json_schema: Callable[[], Dict[str, Any]],
    ):
        self.codec = codec
        self.accept = accept
        self.json_schema = json_schema

    def __get_pydantic_core_schema__(self, source_type: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            self._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(self._serialize, info_arg=True),
        )

    def __get_pydantic_json_schema__(self, schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler) -> Dict[str, Any]:
        return self.json_schema()

    def _validate(self, value: Any) -> Any:
        accepted = self.accept(value)
        if accepted is not None:
            return accepted
        return self.codec.decode(value)

    def _serialize(self, value: Any, info: core_schema.SerializationInfo) -> Any:
        return self.codec.encode(value)

class _TensorAnnotation(_CodecAnnotation):
    def _serialize(self, value: torch.Tensor, info: core_schema.SerializationInfo) -> Any:
        record = self.codec.encode(value)
        return record.model_dump(mode="json" if info.mode_is_json() else "python")

def _accept_instance(cls):
    def accept(value):
        return value if isinstance(value, cls) else None
    return accept

def _accept_kind(value):
    if isinstance(value, Kind):
        return value
    if isinstance(value, torch.dtype):
        return Kind.from_dtype(value)
    return None

def _accept_dtype(value):
    if isinstance(value, Kind):
        return value.dtype
    if isinstance(value, torch.dtype):
        # only dtypes with a wire name are allowed
        return Kind.from_dtype(value).dtype
    return None

class _DTypeCodec(KindCodec):
    def decode(self, name: str) -> torch.dtype:
        return KindCodec.decode(self, name).dtype

_DEVICE_CODEC = DeviceCodec()

def _accept_device(value):
    if isinstance(value, torch.device):
        return _DEVICE_CODEC.decode(_DEVICE_CODEC.encode(value))
    return None

def _kind_schema():
    return {"type": "string", "enum": [kind.value for kind in Kind]}

def _device_schema():
    return {"type": "string", "pattern": r"^(cpu|cuda:\+?[0-9]+)$"}

def _reduction_schema():
    return {"type": "string", "pattern": r"^(none|mean|sum|other:[+-]?[0-9]+)$"}

def _tensor_schema():
    return TensorRecord.model_json_schema()

KindField = Annotated[Kind, _CodecAnnotation(KindCodec(), _accept_kind, _kind_schema)]
DTypeField = Annotated[torch.dtype, _CodecAnnotation(_DTypeCodec(), _accept_dtype, _kind_schema)]
DeviceField = Annotated[torch.device, _CodecAnnotation(_DEVICE_CODEC, _accept_device, _device_schema)]
ReductionField = Annotated[Reduction, _CodecAnnotation(ReductionCodec(), _accept_instance(Reduction), _reduction_schema)]

def tensor_field(map_location: Optional[DeviceLike] = None):
    """
    Builds a tensor field type whose decoded tensors go to `map_location`
    instead of the device stored in the record.
    """
    codec = TensorCodec(map_location=map_location)
    return Annotated[torch.Tensor, _TensorAnnotation(codec, _accept_instance(torch.Tensor), _tensor_schema)]

TensorField = tensor_field()
