from .base import Codec
from .kind import Kind, KindCodec
from .device import DeviceCodec
from .reduction import Reduction, ReductionCodec
from .tensor import TensorCodec, TensorRecord, element_size, numel
