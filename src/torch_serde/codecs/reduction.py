import re
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from .base import Codec
from ..errors import InvalidReductionString

_OTHER_PREFIX = "other:"
_CODE = re.compile(r"[+-]?[0-9]+")
_I64_MIN = -(2 ** 63)
_I64_MAX = 2 ** 63 - 1

# torch.nn._reduction.get_enum
_TORCH_ENUM = {"none": 0, "mean": 1, "sum": 2}

@dataclass(frozen=True)
class Reduction:
    """
    How a loss aggregates per-element values: "none", "mean", "sum", or a
    custom integer code ("other").

    Use the NONE/MEAN/SUM constants and Reduction.other(code); the custom code
    is only set for "other".
    """
    mode: str
    code: Optional[int] = None

    NONE: ClassVar["Reduction"]
    MEAN: ClassVar["Reduction"]
    SUM: ClassVar["Reduction"]

    def __post_init__(self):
        if self.mode == "other":
            if not isinstance(self.code, int) or isinstance(self.code, bool):
                raise TypeError(f"custom reduction code must be an int, got {self.code!r}")
            if not _I64_MIN <= self.code <= _I64_MAX:
                raise ValueError(f"custom reduction code {self.code} does not fit in 64 bits")
        elif self.mode in _TORCH_ENUM:
            if self.code is not None:
                raise ValueError(f"reduction '{self.mode}' takes no code")
        else:
            raise ValueError(f"unknown reduction mode '{self.mode}'")

    @classmethod
    def other(cls, code: int) -> "Reduction":
        return cls("other", code)

    @property
    def is_custom(self) -> bool:
        return self.mode == "other"

    @classmethod
    def from_torch(cls, reduction: Union[str, int]) -> "Reduction":
        """
        Builds a Reduction from the string a torch loss takes or from torch's
        legacy integer enum (0: none, 1: mean, 2: sum, anything else: custom).
        """
        if isinstance(reduction, str):
            if reduction not in _TORCH_ENUM:
                raise ValueError(f"{reduction} is not a valid value for reduction")
            return cls(reduction)
        for mode, value in _TORCH_ENUM.items():
            if reduction == value:
                return cls(mode)
        return cls.other(reduction)

    def to_torch(self) -> str:
        """
        The reduction string accepted by torch.nn.functional losses.
        """
        if self.is_custom:
            raise ValueError(f"custom reduction {self.code} has no torch equivalent")
        return self.mode

    def to_enum(self) -> int:
        if self.is_custom:
            return self.code
        return _TORCH_ENUM[self.mode]

    def __repr__(self):
        if self.is_custom:
            return f"Reduction.other({self.code})"
        return f"Reduction.{self.mode.upper()}"

Reduction.NONE = Reduction("none")
Reduction.MEAN = Reduction("mean")
Reduction.SUM = Reduction("sum")

class ReductionCodec(Codec):
    """
    Maps a Reduction to "none", "mean", "sum" or "other:<code>" and back.
    """
    def encode(self, reduction: Reduction) -> str:
        if not isinstance(reduction, Reduction):
            raise TypeError(f"expected a Reduction, got {type(reduction).__name__}")
        if reduction.is_custom:
            return f"{_OTHER_PREFIX}{reduction.code}"
        return reduction.mode

    def decode(self, text: str) -> Reduction:
        if not isinstance(text, str):
            raise InvalidReductionString(text)
        if text == "none":
            return Reduction.NONE
        if text == "mean":
            return Reduction.MEAN
        if text == "sum":
            return Reduction.SUM
        if text.startswith(_OTHER_PREFIX):
            remaining = text[len(_OTHER_PREFIX):]
            if _CODE.fullmatch(remaining):
                code = int(remaining)
                if _I64_MIN <= code <= _I64_MAX:
                    return Reduction.other(code)
        raise InvalidReductionString(text)
