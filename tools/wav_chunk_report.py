"""
Run a 16-bit mono WAV through the capture converter and print chunk stats.

    PYTHONPATH=backend python tools/wav_chunk_report.py hello.wav --block 128
"""
import argparse
import wave

import numpy as np

from audio.processor import AudioCaptureProcessor
from protocol.messages import ChunkMessage, ErrorMessage


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("path")
    parser.add_argument("--block", type=int, default=128, help="host block size in samples")
    parser.add_argument("--capacity", type=int, default=2048)
    args = parser.parse_args()

    with wave.open(args.path, "rb") as wf:
        rate = wf.getframerate()
        channels = wf.getnchannels()
        width = wf.getsampwidth()
        raw = wf.readframes(wf.getnframes())

    print("sample_rate:", rate)
    print("channels:", channels)
    print("sample_width_bytes:", width)

    if width != 2:
        raise SystemExit("only 16-bit WAV files are supported")

    pcm = np.frombuffer(raw, dtype="<i2").reshape(-1, channels)[:, 0]
    samples = pcm.astype(np.float32) / 32768.0

    processor = AudioCaptureProcessor(capacity=args.capacity, host_sample_rate_hz=rate)
    for start in range(0, samples.shape[0], args.block):
        processor.process([[samples[start : start + args.block]]])

    messages = processor.port.drain()
    chunks = [m for m in messages if isinstance(m, ChunkMessage)]
    errors = [m for m in messages if isinstance(m, ErrorMessage)]

    print("chunks:", len(chunks))
    print("errors:", len(errors))
    print("unflushed_samples:", processor.converter.pending)
    if chunks:
        peak = max(int(np.abs(np.frombuffer(c.pcm_bytes, dtype="<i2").astype(np.int32)).max()) for c in chunks)
        print("peak_abs:", peak)


if __name__ == "__main__":
    main()
