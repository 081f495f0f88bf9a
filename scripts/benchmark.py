"""
beatscope analysis benchmark + FFT parity validation.

Usage:
    python scripts/benchmark.py [--quick]

Modes:
    default  — 60 s of synthetic audio, 2 warm-up + 5 timed runs
    --quick  — 10 s of synthetic audio, 1 warm-up + 3 timed runs (CI-friendly)

Output: timing table + parity report printed to stdout.

Parity check: compares the recursive FFT and the spectral descriptors
against numpy.fft / librosa reference implementations on random frames.
"""

import argparse
import os
import sys
import time
from typing import List

import librosa
import numpy as np

# Make sure the installed package is on the path when run from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from beatscope.core.analyzer import FeatureAnalyzer
from beatscope.core.fft import fft, ifft, magnitude_spectrum
from beatscope.core.framer import AnalysisParams, apply_window, frame_signal
from beatscope.core.normalizer import LoudnessNormalizer
from beatscope.pipeline import analyze_audio

_SEP = "─" * 72
SR = 44100


def _hdr(title: str) -> None:
    print(f"\n{_SEP}")
    print(f"  {title}")
    print(_SEP)


def _timeit(fn, *args, warmup: int = 2, runs: int = 5, **kwargs) -> List[float]:
    """Run fn(*args, **kwargs), discard warmup iterations, return timed samples."""
    for _ in range(warmup):
        fn(*args, **kwargs)
    times = []
    for _ in range(runs):
        t0 = time.perf_counter()
        fn(*args, **kwargs)
        times.append(time.perf_counter() - t0)
    return times


def _stats(times: List[float]) -> str:
    arr = np.array(times)
    return f"mean={arr.mean()*1000:.1f} ms  min={arr.min()*1000:.1f} ms  max={arr.max()*1000:.1f} ms"


def _synthetic_track(seconds: float) -> np.ndarray:
    """Kick-like low pulses over a mid pad with hi-hat noise bursts."""
    rng = np.random.RandomState(0)
    t = np.arange(int(SR * seconds)) / SR
    beat_phase = (t * 2.0) % 1.0
    kick = np.sin(2 * np.pi * 60 * t) * np.exp(-beat_phase * 12)
    pad = 0.2 * np.sin(2 * np.pi * 440 * t)
    hats = 0.1 * rng.randn(len(t)) * (((t * 8.0) % 1.0) < 0.1)
    return np.clip(0.6 * kick + pad + hats, -1.0, 1.0)


# ---------------------------------------------------------------------------
# Parity helpers
# ---------------------------------------------------------------------------

def _parity_fft(n: int, n_frames: int = 32) -> dict:
    x = np.random.RandomState(1).randn(n_frames, n)
    real, imag = fft(x)
    ref = np.fft.fft(x, axis=-1)
    back_real, _ = ifft(real, imag)
    return {
        "max_diff": float(np.max(np.abs((real + 1j * imag) - ref))),
        "round_trip": float(np.max(np.abs(back_real - x))),
    }


def _parity_centroid(n: int) -> dict:
    """Our bin-normalized centroid against librosa's Hz centroid."""
    y = _synthetic_track(2.0)
    frames = frame_signal(y, AnalysisParams(window_size=n, hop_size=n // 4))
    magnitude = magnitude_spectrum(*fft(apply_window(frames)))
    ours = FeatureAnalyzer.spectral_centroid(magnitude) * (SR / 2)

    S = magnitude.T
    freqs = np.arange(S.shape[0]) * SR / n
    theirs = librosa.feature.spectral_centroid(S=S, freq=freqs)[0]
    corr = float(np.corrcoef(ours, theirs)[0, 1]) if ours.std() > 0 else 1.0
    return {"max_diff": float(np.max(np.abs(ours - theirs))), "corr": corr}


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="beatscope analysis benchmark")
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Use 10 s of audio instead of 60 s for fast CI runs",
    )
    args = parser.parse_args()

    if args.quick:
        SECONDS = 10.0
        WARMUP, RUNS = 1, 3
        label = "10 s @ 44.1 kHz (quick mode)"
    else:
        SECONDS = 60.0
        WARMUP, RUNS = 2, 5
        label = "60 s @ 44.1 kHz (full mode)"

    print(f"\nbeatscope Analysis Benchmark  —  {label}")
    print(f"Warm-up runs: {WARMUP}  |  Timed runs: {RUNS}")

    y = _synthetic_track(SECONDS)
    results = {}

    # ------------------------------------------------------------------
    # 1. Loudness passes
    # ------------------------------------------------------------------
    _hdr("1. loudness profile (RMS pass + normalize)")
    params = AnalysisParams()
    t = _timeit(LoudnessNormalizer().profile, y, params, warmup=WARMUP, runs=RUNS)
    results["loudness_profile"] = t
    print(f"  {_stats(t)}")

    # ------------------------------------------------------------------
    # 2. Batched FFT
    # ------------------------------------------------------------------
    _hdr("2. fft (256 frames × 2048)")
    frames = apply_window(frame_signal(y, params)[:256])
    t = _timeit(fft, frames, warmup=WARMUP, runs=RUNS)
    results["fft_256x2048"] = t
    print(f"  {_stats(t)}")

    # ------------------------------------------------------------------
    # 3. Full pipeline at several window sizes
    # ------------------------------------------------------------------
    for window_size in (1024, 2048, 4096):
        name = f"analyze_audio_w{window_size}"
        _hdr(f"3. analyze_audio (window={window_size}, hop={window_size // 4})")
        t = _timeit(
            analyze_audio, y, SR,
            window_size=window_size, hop_size=window_size // 4,
            warmup=WARMUP, runs=RUNS,
        )
        results[name] = t
        realtime = SECONDS / np.mean(t)
        print(f"  {_stats(t)}  ({realtime:.1f}× realtime)")

    # ------------------------------------------------------------------
    # Parity validation
    # ------------------------------------------------------------------
    _hdr("Parity validation (recursive FFT vs numpy.fft, centroid vs librosa)")
    FFT_MAX = 1e-6
    CORR_MIN = 0.999

    all_ok = True
    for n in (256, 2048):
        r = _parity_fft(n)
        ok = r["max_diff"] <= FFT_MAX * n and r["round_trip"] <= FFT_MAX
        all_ok &= ok
        print(
            f"  fft n={n:<6} max={r['max_diff']:.2e}  round_trip={r['round_trip']:.2e}"
            f"  [{'PASS' if ok else 'FAIL'}]"
        )

    r = _parity_centroid(2048)
    ok = r["corr"] >= CORR_MIN
    all_ok &= ok
    print(
        f"  centroid       max={r['max_diff']:.2f} Hz  corr={r['corr']:.4f}"
        f"  [{'PASS' if ok else 'FAIL'}]"
    )

    if all_ok:
        print("\n  All parity checks PASSED.")
    else:
        print("\n  !! PARITY FAILURES DETECTED !!")
        sys.exit(1)

    # ------------------------------------------------------------------
    # Summary table
    # ------------------------------------------------------------------
    _hdr("Summary")
    rows = [(name, f"{np.mean(times)*1000:.1f}") for name, times in results.items()]

    name_w = max(len(r[0]) for r in rows) + 2
    print(f"  {'Function':<{name_w}} Time (ms, mean)")
    print(f"  {'-'*name_w} ---------------")
    for name, val in rows:
        print(f"  {name:<{name_w}} {val}")

    print(f"\n{_SEP}\n")


if __name__ == "__main__":
    main()
