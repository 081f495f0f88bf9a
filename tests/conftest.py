"""Shared synthetic-signal fixtures."""

import numpy as np
import pytest

TEST_SR = 44100


def tone(freq: float, duration: float, sr: int = TEST_SR, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(int(sr * duration)) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


@pytest.fixture
def sample_rate():
    return TEST_SR


@pytest.fixture
def pure_sine():
    """Two seconds of 440 Hz with a rising amplitude envelope."""
    sr = TEST_SR
    y = tone(440.0, 2.0, sr, amplitude=1.0)
    y *= np.linspace(0.1, 1.0, len(y))
    return y, sr


@pytest.fixture
def silence():
    """One second of digital silence."""
    return np.zeros(TEST_SR), TEST_SR


@pytest.fixture
def two_tone():
    """
    100 Hz / 5000 Hz alternating every 0.5 s over two seconds.

    The first 50 ms are silent so the loudness range has a true floor.
    Returns (samples, sample_rate, segments) where segments lists
    (start_sec, end_sec, expected_beat_type).
    """
    sr = TEST_SR
    segments = [
        (0.0, 0.5, "low"),
        (0.5, 1.0, "high"),
        (1.0, 1.5, "low"),
        (1.5, 2.0, "high"),
    ]
    t = np.arange(int(sr * 2.0)) / sr
    y = np.zeros_like(t)
    for start, end, kind in segments:
        freq = 100.0 if kind == "low" else 5000.0
        mask = (t >= start) & (t < end)
        y[mask] = 0.5 * np.sin(2 * np.pi * freq * t[mask])
    y[: int(0.05 * sr)] = 0.0
    return y, sr, segments


@pytest.fixture
def noise():
    """Three seconds of seeded white noise with a slow tremolo."""
    rng = np.random.default_rng(1234)
    sr = 22050
    n = sr * 3
    envelope = 0.5 + 0.5 * np.sin(2 * np.pi * 0.5 * np.arange(n) / sr)
    return np.clip(0.3 * envelope * rng.standard_normal(n), -1.0, 1.0), sr
