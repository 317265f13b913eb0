"""
fft.py - Fast Fourier transform of a synthetic three-tone signal

Signal (t = i / n, i = 0 .. n-1):

    x(t) = sin(2 pi 5 t) + 0.5 sin(2 pi 10 t) + 0.3 sin(2 pi 20 t)

Native path: ``numpy.fft.fft`` over a numpy signal.
Managed path: iterative radix-2 Cooley-Tukey on a list of Python complex
numbers (bit-reversal permutation, then log2(n) butterfly passes).

Both return the spectrum summary

    [max_magnitude, total_energy, avg_energy, peak_frequency]

where the peak is searched over bins 0 .. n/2 only; a real signal has a
mirror-image peak at n - k and the lowest bin wins ties.
"""

from __future__ import annotations

import cmath
import math
from typing import List, Sequence

import numpy as np

from nativebench.algorithms.base import AlgorithmDefinition, KernelRunner
from nativebench.core.errors import InputError
from nativebench.core.models import AlgorithmType
from nativebench.validation import DEFAULT_VALIDATORS

# (frequency, amplitude) pairs of the synthetic signal
TONES = ((5.0, 1.0), (10.0, 0.5), (20.0, 0.3))


def check_length(n) -> None:
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0 or n & (n - 1):
        raise InputError(f"FFT length must be a positive power of two, got {n!r}")


def _summary(magnitudes: Sequence[float], n: int) -> List[float]:
    energies = [m * m for m in magnitudes]
    total_energy = math.fsum(energies)
    half = magnitudes[: n // 2 + 1]
    peak = max(range(len(half)), key=half.__getitem__)
    return [max(magnitudes), total_energy, total_energy / n, float(peak)]


# ---------------------------------------------------------------------------
# Native
# ---------------------------------------------------------------------------

def fft_numpy(n: int) -> List[float]:
    check_length(n)
    t = np.arange(n, dtype=np.float64) / n
    signal = sum(amp * np.sin(2.0 * np.pi * freq * t) for freq, amp in TONES)
    magnitudes = np.abs(np.fft.fft(signal))

    energy = magnitudes ** 2
    total_energy = float(energy.sum())
    peak = int(np.argmax(magnitudes[: n // 2 + 1]))
    return [float(magnitudes.max()), total_energy, total_energy / n, float(peak)]


# ---------------------------------------------------------------------------
# Managed
# ---------------------------------------------------------------------------

def _bit_reverse(data: List[complex]) -> None:
    n = len(data)
    j = 0
    for i in range(1, n):
        bit = n >> 1
        while j & bit:
            j ^= bit
            bit >>= 1
        j |= bit
        if i < j:
            data[i], data[j] = data[j], data[i]


def cooley_tukey(samples: Sequence[float]) -> List[complex]:
    """In-order radix-2 DIT transform of a power-of-two length sequence."""
    data = [complex(x) for x in samples]
    n = len(data)
    _bit_reverse(data)

    length = 2
    while length <= n:
        w_len = cmath.exp(-2j * math.pi / length)
        half = length // 2
        for start in range(0, n, length):
            w = 1 + 0j
            for k in range(start, start + half):
                u = data[k]
                v = data[k + half] * w
                data[k] = u + v
                data[k + half] = u - v
                w *= w_len
        length <<= 1
    return data


def fft_pure_python(n: int) -> List[float]:
    check_length(n)
    signal = [
        sum(amp * math.sin(2.0 * math.pi * freq * i / n) for freq, amp in TONES)
        for i in range(n)
    ]
    spectrum = cooley_tukey(signal)
    return _summary([abs(z) for z in spectrum], n)


DEFINITION = AlgorithmDefinition(
    key="fft",
    name="Fast Fourier Transform",
    algorithm_type=AlgorithmType.MATH,
    iterations=5,
    sizes={"small": 256, "medium": 1024, "large": 4096},
    heavy_sizes={"small": 256, "medium": 1024, "large": 4096},
    native_factory=lambda: KernelRunner(fft_numpy, "numpy.fft"),
    managed_factory=lambda: KernelRunner(fft_pure_python, "pure-python"),
    validator=DEFAULT_VALIDATORS.get("fft"),
    check_input=check_length,
)
