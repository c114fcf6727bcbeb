import logging
import math
from typing import Annotated, Any, List, Mapping, Optional, Union

import torch
from pydantic import BaseModel, ConfigDict, Field, SerializationInfo, WithJsonSchema, field_serializer, field_validator

from .base import Codec
from .device import DeviceCodec, DeviceLike
from .kind import Kind, KindCodec, KindLike, as_kind
from ..errors import MalformedTensorRecord, UnsupportedDevice, UnsupportedKind

logger = logging.getLogger(__name__)

_KIND_CODEC = KindCodec()
_DEVICE_CODEC = DeviceCodec()

# Complex kinds are deliberately absent.
_ELEMENT_SIZES = {
    Kind.UINT8: 1,
    Kind.INT8: 1,
    Kind.BOOL: 1,
    Kind.QINT8: 1,
    Kind.QUINT8: 1,
    Kind.INT16: 2,
    Kind.HALF: 2,
    Kind.BFLOAT16: 2,
    Kind.INT: 4,
    Kind.QINT32: 4,
    Kind.FLOAT: 4,
    Kind.INT64: 8,
    Kind.DOUBLE: 8,
}

# Integer kinds holding the raw values of quantized tensors
_QUANTIZED_STORAGE = {
    Kind.QINT8: torch.int8,
    Kind.QUINT8: torch.uint8,
    Kind.QINT32: torch.int32,
}

_I64_MIN = -(2 ** 63)
_I64_MAX = 2 ** 63 - 1

def element_size(kind: KindLike) -> int:
    """
    Byte width of one element of the given kind.

    Raises:
        UnsupportedKind: the kind has no entry in the size table.
    """
    kind = as_kind(kind)
    try:
        return _ELEMENT_SIZES[kind]
    except KeyError:
        raise UnsupportedKind(kind) from None

def numel(shape: List[int]) -> int:
    # an empty shape is a scalar
    return math.prod(shape)

class TensorRecord(BaseModel):
    """
    Serialized form of a tensor.

    `data` holds the row-major raw bytes of every element, so its length is
    always numel(shape) * element_size(kind) for records produced by
    TensorCodec.encode. In JSON it is written as an array of byte values.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    requires_grad: Annotated[bool, Field(strict=True)]
    device: Annotated[
        torch.device,
        WithJsonSchema({"type": "string", "pattern": r"^(cpu|cuda:\+?[0-9]+)$"}),
    ]
    shape: List[Annotated[int, Field(strict=True, ge=_I64_MIN, le=_I64_MAX)]]
    kind: Annotated[Kind, WithJsonSchema({"type": "string", "enum": [kind.value for kind in Kind]})]
    data: Annotated[
        bytes,
        WithJsonSchema({"type": "array", "items": {"type": "integer", "minimum": 0, "maximum": 255}}),
    ]

    @field_validator("device", mode="before")
    @classmethod
    def _validate_device(cls, value: Any) -> torch.device:
        if isinstance(value, torch.device):
            # normalizes "cuda" to "cuda:0" and rejects other device types
            return _DEVICE_CODEC.decode(_DEVICE_CODEC.encode(value))
        return _DEVICE_CODEC.decode(value)

    @field_validator("kind", mode="before")
    @classmethod
    def _validate_kind(cls, value: Any) -> Kind:
        if isinstance(value, (Kind, torch.dtype)):
            return as_kind(value)
        return _KIND_CODEC.decode(value)

    @field_validator("data", mode="before")
    @classmethod
    def _validate_data(cls, value: Any) -> bytes:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        if isinstance(value, (list, tuple)):
            try:
                return bytes(value)
            except (TypeError, ValueError):
                raise ValueError("tensor data must be a sequence of integers in 0..255") from None
        raise ValueError(f"tensor data must be bytes or a sequence of integers, got {type(value).__name__}")

    @field_serializer("device")
    def _serialize_device(self, device: torch.device) -> str:
        return _DEVICE_CODEC.encode(device)

    @field_serializer("kind")
    def _serialize_kind(self, kind: Kind) -> str:
        return _KIND_CODEC.encode(kind)

    @field_serializer("data")
    def _serialize_data(self, data: bytes, info: SerializationInfo) -> Union[bytes, List[int]]:
        if info.mode_is_json():
            return list(data)
        return data

def _tensor_bytes(tensor: torch.Tensor, kind: Kind) -> bytes:
    flat = tensor.detach()
    if kind.is_quantized:
        flat = flat.int_repr()
    flat = flat.cpu().contiguous().reshape(-1)
    if flat.numel() == 0:
        return b""
    return flat.view(torch.uint8).numpy().tobytes()

def _tensor_from_bytes(data: bytes, shape: List[int], kind: Kind) -> torch.Tensor:
    dtype = _QUANTIZED_STORAGE.get(kind, kind.dtype)
    if data:
        # bytearray: the tensor gets its own writable copy of the payload
        flat = torch.frombuffer(bytearray(data), dtype=dtype)
    else:
        flat = torch.empty(0, dtype=dtype)
    tensor = flat.reshape(shape)
    if kind.is_quantized:
        # the record keeps the integer representation only
        tensor = torch._make_per_tensor_quantized_tensor(tensor, 1.0, 0)
    return tensor

class TensorCodec(Codec):
    """
    Converts a tensor to a TensorRecord (gradient flag, device, shape, kind and
    raw bytes) and reconstructs it.

    Args:
        map_location: If set, decoded tensors are placed on this device instead
            of the one stored in the record.
    """
    def __init__(self, map_location: Optional[DeviceLike] = None):
        self.map_location = None if map_location is None else torch.device(map_location)

    def encode(self, tensor: torch.Tensor) -> TensorRecord:
        kind = as_kind(tensor.dtype)
        # fails for kinds without a byte width, before anything is copied
        element_size(kind)
        if tensor.device.type not in ("cpu", "cuda"):
            raise UnsupportedDevice(tensor.device)

        shape = list(tensor.shape)
        data = _tensor_bytes(tensor, kind)
        logger.debug("encoded tensor shape=%s kind=%s device=%s bytes=%d", shape, kind.value, tensor.device, len(data))

        return TensorRecord(
            requires_grad=tensor.requires_grad,
            device=tensor.device,
            shape=shape,
            kind=kind,
            data=data,
        )

    def decode(self, record: Union[TensorRecord, Mapping[str, Any]]) -> torch.Tensor:
        if not isinstance(record, TensorRecord):
            record = TensorRecord.model_validate(record)

        kind = record.kind
        width = element_size(kind)
        if any(dim < 0 for dim in record.shape):
            raise MalformedTensorRecord(reason=f"negative dimension in shape {record.shape}")
        expected = numel(record.shape) * width
        actual = len(record.data)
        if actual != expected:
            raise MalformedTensorRecord(expected, actual)
        if kind is Kind.BOOL and record.data.translate(None, b"\x00\x01"):
            raise MalformedTensorRecord(reason="bool tensor data must only hold bytes 0 and 1")
        if record.requires_grad and not kind.dtype.is_floating_point:
            raise MalformedTensorRecord(reason=f"tensor of kind {kind.value} cannot require gradients")

        tensor = _tensor_from_bytes(record.data, record.shape, kind)
        device = self.map_location if self.map_location is not None else record.device
        logger.debug("decoded tensor shape=%s kind=%s bytes=%d onto %s", record.shape, kind.value, actual, device)
        # Placement first, so a tensor that requires grad stays a leaf.
        tensor = tensor.to(device)
        if record.requires_grad:
            tensor.requires_grad_(True)
        return tensor

    def bytes(self, record: TensorRecord) -> int:
        return len(record.data)
