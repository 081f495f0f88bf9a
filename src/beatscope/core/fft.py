"""
Radix-2 decimation-in-time FFT.

The transform runs along the last axis, so a whole stack of frames of
shape (n_frames, N) is transformed with one recursion instead of one per
frame. N must be a power of two.
"""

from typing import Optional, Tuple

import numpy as np

from beatscope.core.framer import is_power_of_two
from beatscope.errors import InputError


def _fft(real: np.ndarray, imag: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    n = real.shape[-1]
    if n <= 1:
        return real, imag

    even_real, even_imag = _fft(real[..., 0::2], imag[..., 0::2])
    odd_real, odd_imag = _fft(real[..., 1::2], imag[..., 1::2])

    angle = -2.0 * np.pi * np.arange(n // 2) / n
    cos = np.cos(angle)
    sin = np.sin(angle)

    # Twiddle-rotated odd half
    t_real = cos * odd_real - sin * odd_imag
    t_imag = cos * odd_imag + sin * odd_real

    out_real = np.concatenate([even_real + t_real, even_real - t_real], axis=-1)
    out_imag = np.concatenate([even_imag + t_imag, even_imag - t_imag], axis=-1)
    return out_real, out_imag


def _as_pair(
    real: np.ndarray,
    imag: Optional[np.ndarray],
) -> Tuple[np.ndarray, np.ndarray]:
    real = np.asarray(real, dtype=np.float64)
    if imag is None:
        imag = np.zeros_like(real)
    else:
        imag = np.asarray(imag, dtype=np.float64)
        if imag.shape != real.shape:
            raise InputError(
                f"real and imaginary parts differ in shape: {real.shape} vs {imag.shape}"
            )
    if real.ndim == 0:
        raise InputError("FFT input must have at least one dimension")
    n = real.shape[-1]
    if n > 1 and not is_power_of_two(n):
        raise InputError(f"FFT length must be a power of two, got {n}")
    return real, imag


def fft(
    real: np.ndarray,
    imag: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Forward transform of a real/imaginary pair along the last axis.

    Args:
        real: Real part, shape (..., N).
        imag: Imaginary part, same shape. Zeros when omitted.

    Returns:
        Tuple of (real, imag) arrays with the same shape as the input.
        Inputs are never modified.
    """
    real, imag = _as_pair(real, imag)
    out_real, out_imag = _fft(real, imag)
    if out_real is real:
        return real.copy(), imag.copy()
    return out_real, out_imag


def ifft(
    real: np.ndarray,
    imag: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Inverse transform, computed as ``conj(fft(conj(x))) / N``."""
    real, imag = _as_pair(real, imag)
    n = max(real.shape[-1], 1)
    out_real, out_imag = _fft(real, -imag)
    return out_real / n, -out_imag / n


def magnitude_spectrum(real: np.ndarray, imag: np.ndarray) -> np.ndarray:
    """
    Magnitude of the first N/2 bins.

    Bins at and above N/2 mirror the lower half for real input and carry no
    extra information.
    """
    half = real.shape[-1] // 2
    return np.hypot(real[..., :half], imag[..., :half])
