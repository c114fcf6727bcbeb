from .codecs import (
    Codec,
    DeviceCodec,
    Kind,
    KindCodec,
    Reduction,
    ReductionCodec,
    TensorCodec,
    TensorRecord,
    element_size,
    numel,
)
from .errors import (
    InvalidDeviceString,
    InvalidKindName,
    InvalidReductionString,
    MalformedTensorRecord,
    SerdeError,
    UnsupportedDevice,
    UnsupportedKind,
)
from .fields import DTypeField, DeviceField, KindField, ReductionField, TensorField, tensor_field

__version__ = "0.1.0"
