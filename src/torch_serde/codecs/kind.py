import enum
from typing import Union

import torch

from .base import Codec
from ..errors import InvalidKindName, UnsupportedKind

class Kind(enum.Enum):
    """
    Element kinds with a stable wire name. The value of each member is its name
    on the wire.
    """
    UINT8 = "uint8"
    INT8 = "int8"
    INT16 = "int16"
    INT = "int"
    INT64 = "int64"
    HALF = "half"
    FLOAT = "float"
    DOUBLE = "double"
    COMPLEX_HALF = "complex_half"
    COMPLEX_FLOAT = "complex_float"
    COMPLEX_DOUBLE = "complex_double"
    BOOL = "bool"
    QINT8 = "qint8"
    QUINT8 = "quint8"
    QINT32 = "qint32"
    BFLOAT16 = "bfloat16"

    @property
    def dtype(self) -> torch.dtype:
        return _KIND_TO_DTYPE[self]

    @property
    def is_quantized(self) -> bool:
        return self in (Kind.QINT8, Kind.QUINT8, Kind.QINT32)

    @classmethod
    def from_dtype(cls, dtype: torch.dtype) -> "Kind":
        try:
            return _DTYPE_TO_KIND[dtype]
        except KeyError:
            raise UnsupportedKind(dtype) from None

_KIND_TO_DTYPE = {
    Kind.UINT8: torch.uint8,
    Kind.INT8: torch.int8,
    Kind.INT16: torch.int16,
    Kind.INT: torch.int32,
    Kind.INT64: torch.int64,
    Kind.HALF: torch.float16,
    Kind.FLOAT: torch.float32,
    Kind.DOUBLE: torch.float64,
    Kind.COMPLEX_HALF: torch.complex32,
    Kind.COMPLEX_FLOAT: torch.complex64,
    Kind.COMPLEX_DOUBLE: torch.complex128,
    Kind.BOOL: torch.bool,
    Kind.QINT8: torch.qint8,
    Kind.QUINT8: torch.quint8,
    Kind.QINT32: torch.qint32,
    Kind.BFLOAT16: torch.bfloat16,
}
_DTYPE_TO_KIND = {dtype: kind for kind, dtype in _KIND_TO_DTYPE.items()}

# Adding a member without a dtype must fail at import, not at first use.
if set(_KIND_TO_DTYPE) != set(Kind):
    raise RuntimeError("every Kind needs a torch dtype")

KindLike = Union[Kind, torch.dtype]

def as_kind(kind: KindLike) -> Kind:
    if isinstance(kind, Kind):
        return kind
    if isinstance(kind, torch.dtype):
        return Kind.from_dtype(kind)
    raise UnsupportedKind(kind)

class KindCodec(Codec):
    """
    Maps an element kind to its lowercase wire name and back.
    Names are matched exactly; "Float" or "uint16" are rejected.
    """
    def encode(self, kind: KindLike) -> str:
        return as_kind(kind).value

    def decode(self, name: str) -> Kind:
        try:
            return Kind(name)
        except ValueError:
            raise InvalidKindName(name) from None

    def decode_dtype(self, name: str) -> torch.dtype:
        return KindCodec.decode(self, name).dtype
