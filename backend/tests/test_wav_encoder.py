import struct

import numpy as np

from audioflow.models.artifact import SAMPLE_RATE, WAV_HEADER_BYTES
from audioflow.services.wav_encoder import decode_wav, encode_wav, to_pcm16

HEADER_FORMAT = "<4sI4s4sIHHIIHH4sI"


def test_header_layout_is_canonical() -> None:
    artifact = encode_wav(np.zeros(10))
    assert len(artifact) == WAV_HEADER_BYTES + 20
    assert struct.calcsize(HEADER_FORMAT) == WAV_HEADER_BYTES

    fields = struct.unpack(HEADER_FORMAT, artifact.header)
    assert fields == (
        b"RIFF",
        36 + 20,
        b"WAVE",
        b"fmt ",
        16,
        1,
        1,
        SAMPLE_RATE,
        SAMPLE_RATE * 2,
        2,
        16,
        b"data",
        20,
    )


def test_samples_are_rounded_and_clamped() -> None:
    signal = np.array([0.0, 1.0, -1.0, 0.25, 2.0, -2.0, 0.1])
    artifact = encode_wav(signal)
    pcm = np.frombuffer(artifact.data[WAV_HEADER_BYTES:], dtype="<i2")
    expected = [0, 32767, -32767, round(0.25 * 32767), 32767, -32767, round(0.1 * 32767)]
    assert pcm.tolist() == expected
    assert artifact.n_samples == len(signal)


def test_to_pcm16_dtype() -> None:
    pcm = to_pcm16(np.array([0.5, -0.5]))
    assert pcm.dtype == np.int16
    assert pcm.dtype.str == "<i2"
    assert pcm.tolist() == [16384, -16384]


def test_decode_reads_back_samples() -> None:
    signal = np.linspace(-0.9, 0.9, 441)
    sr, decoded = decode_wav(encode_wav(signal))
    assert sr == SAMPLE_RATE
    assert len(decoded) == len(signal)
    assert np.max(np.abs(decoded - signal)) <= 1.0 / 32767


def test_big_endian_input_still_encodes_little_endian() -> None:
    signal = np.array([0.5, -0.25, 1.0], dtype=">f8")
    artifact = encode_wav(signal)
    assert artifact.data[0:4] == b"RIFF"
    pcm = np.frombuffer(artifact.data[WAV_HEADER_BYTES:], dtype="<i2")
    assert pcm.tolist() == [16384, round(-0.25 * 32767), 32767]
