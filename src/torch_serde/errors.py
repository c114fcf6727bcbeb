from typing import Any, Optional

class SerdeError(ValueError):
    """
    Base class for every encode/decode failure raised by torch_serde.

    Subclassing ValueError lets pydantic report a failing field as a
    ValidationError of the containing model.
    """

class UnsupportedKind(SerdeError):
    def __init__(self, kind: Any):
        self.kind = kind
        super().__init__(f"tensor with kind {kind} is not supported yet")

class UnsupportedDevice(SerdeError):
    def __init__(self, device: Any):
        self.device = device
        super().__init__(f"device {device} is not supported, expected cpu or cuda")

class InvalidKindName(SerdeError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'invalid kind "{name}"')

class InvalidDeviceString(SerdeError):
    def __init__(self, text: str):
        self.text = text
        super().__init__(f"invalid device name {text}")

class InvalidReductionString(SerdeError):
    def __init__(self, text: str):
        self.text = text
        super().__init__(f"invalid reduction '{text}'")

class MalformedTensorRecord(SerdeError):
    def __init__(self, expected: Optional[int] = None, actual: Optional[int] = None, reason: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        self.reason = reason
        if reason is None:
            reason = f"expected {expected} bytes of tensor data, got {actual}"
        super().__init__(f"malformed tensor record: {reason}")
