import re
from typing import Union

import torch

from .base import Codec
from ..errors import InvalidDeviceString, UnsupportedDevice

_CUDA_PREFIX = "cuda:"
_INDEX = re.compile(r"\+?[0-9]+")

DeviceLike = Union[torch.device, str]

class DeviceCodec(Codec):
    """
    Maps a torch.device to "cpu" or "cuda:<index>" and back.
    """
    def encode(self, device: DeviceLike) -> str:
        device = torch.device(device)
        if device.type == "cpu":
            return "cpu"
        if device.type == "cuda":
            # A bare "cuda" device has no index yet; it names the first GPU.
            index = 0 if device.index is None else device.index
            return f"{_CUDA_PREFIX}{index}"
        raise UnsupportedDevice(device)

    def decode(self, text: str) -> torch.device:
        if not isinstance(text, str):
            raise InvalidDeviceString(text)
        if text == "cpu":
            return torch.device("cpu")
        if text.startswith(_CUDA_PREFIX):
            remaining = text[len(_CUDA_PREFIX):]
            if _INDEX.fullmatch(remaining):
                index = int(remaining)
                try:
                    device = torch.device("cuda", index)
                except (RuntimeError, OverflowError, TypeError, ValueError):
                    device = None
                # torch stores the index in a narrow integer type
                if device is not None and device.index == index:
                    return device
        raise InvalidDeviceString(text)
