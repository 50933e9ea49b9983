import struct

import numpy as np

from .types import SampleBuffer

HEADER_SIZE = 44
NUM_CHANNELS = 1
BITS_PER_SAMPLE = 16

# RIFF chunk, fmt subchunk, data subchunk header; all little-endian
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def pcm16(samples: np.ndarray) -> bytes:
    """Signed 16-bit little-endian PCM for float samples in [-1, 1]."""
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    return np.round(clipped * 32767).astype("<i2").tobytes()


def wav_header(sample_rate: int, data_bytes: int) -> bytes:
    block_align = NUM_CHANNELS * BITS_PER_SAMPLE // 8
    return _HEADER.pack(
        b"RIFF",
        36 + data_bytes,
        b"WAVE",
        b"fmt ",
        16,
        1,  # PCM
        NUM_CHANNELS,
        sample_rate,
        sample_rate * block_align,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_bytes,
    )


def encode(buffer: SampleBuffer) -> bytes:
    payload = pcm16(buffer.samples)
    return wav_header(buffer.sample_rate, len(payload)) + payload
