import torch
import pytest
from torch_serde import DeviceCodec, InvalidDeviceString, UnsupportedDevice

def test_device_codec_encode():
    codec = DeviceCodec()
    assert codec.encode(torch.device("cpu")) == "cpu"
    assert codec.encode(torch.device("cuda", 0)) == "cuda:0"
    assert codec.encode(torch.device("cuda", 1)) == "cuda:1"
    assert codec.encode("cuda:3") == "cuda:3"

def test_bare_cuda_is_first_gpu():
    codec = DeviceCodec()
    assert codec.encode(torch.device("cuda")) == "cuda:0"

def test_device_codec_decode():
    codec = DeviceCodec()
    assert codec.decode("cpu") == torch.device("cpu")
    assert codec.decode("cuda:0") == torch.device("cuda", 0)
    assert codec.decode("cuda:1") == torch.device("cuda", 1)
    assert codec.decode("cuda:12") == torch.device("cuda", 12)

def test_device_codec_accepts_explicit_plus_sign():
    codec = DeviceCodec()
    assert codec.decode("cuda:+1") == torch.device("cuda", 1)

@pytest.mark.parametrize("device", ["cpu", "cuda:0", "cuda:1", "cuda:7"])
def test_device_codec_roundtrip(device):
    codec = DeviceCodec()
    decoded = codec.decode(device)
    assert codec.encode(decoded) == device
    assert codec.decode(codec.encode(decoded)) == decoded

@pytest.mark.parametrize("text", [
    "cuda:",
    "cuda:-1",
    "cuda:abc",
    "gpu:0",
    "cuda",
    "CPU",
    "cpu:0",
    " cpu",
    "cuda:1 ",
    "cuda:1x",
    "cuda:1.0",
    "cuda:99999999999999999999",
    "",
])
def test_device_codec_rejects_malformed(text):
    codec = DeviceCodec()
    with pytest.raises(InvalidDeviceString) as excinfo:
        codec.decode(text)
    assert excinfo.value.text == text

def test_device_codec_rejects_non_strings():
    codec = DeviceCodec()
    with pytest.raises(InvalidDeviceString):
        codec.decode(0)

def test_other_device_types_are_unsupported():
    codec = DeviceCodec()
    with pytest.raises(UnsupportedDevice):
        codec.encode(torch.device("meta"))

def test_device_index_beyond_64_bits_keeps_original_text():
    codec = DeviceCodec()
    text = "cuda:" + "9" * 30
    with pytest.raises(InvalidDeviceString) as excinfo:
        codec.decode(text)
    assert excinfo.value.text == text
