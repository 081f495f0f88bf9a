"""Tests for per-frame spectral feature extraction."""

import numpy as np
import pytest

from beatscope.core.analyzer import FeatureAnalyzer, SpectralFeatures, linear_filter_bank
from beatscope.core.framer import AnalysisParams, frame_signal


@pytest.fixture
def analyzer():
    return FeatureAnalyzer(sample_rate=44100, window_size=2048)


class TestBandClassification:
    @pytest.mark.parametrize(
        "frequency, expected",
        [
            (0.0, "low"),
            (249.99, "low"),
            (250.0, "mid"),
            (440.0, "mid"),
            (1999.99, "mid"),
            (2000.0, "high"),
            (22050.0, "high"),
        ],
    )
    def test_thresholds(self, frequency, expected):
        assert FeatureAnalyzer.classify_band(frequency) == expected

    def test_dominant_frequency_is_peak_bin(self, analyzer):
        magnitude = np.zeros((1, 1024))
        magnitude[0, 10] = 5.0
        assert analyzer.dominant_frequency(magnitude)[0] == pytest.approx(10 * 44100 / 2048)

    def test_dominant_frequency_first_peak_wins(self, analyzer):
        magnitude = np.zeros((1, 1024))
        magnitude[0, [30, 40]] = 2.0
        assert analyzer.dominant_frequency(magnitude)[0] == pytest.approx(30 * analyzer.bin_width)

    def test_zero_spectrum_reports_zero_hz(self, analyzer):
        assert analyzer.dominant_frequency(np.zeros((2, 1024))).tolist() == [0.0, 0.0]


class TestSpectralShape:
    def test_centroid_zero_energy(self):
        assert FeatureAnalyzer.spectral_centroid(np.zeros(64))[0] == 0.0

    def test_centroid_single_bin(self):
        magnitude = np.zeros(64)
        magnitude[16] = 3.0
        assert FeatureAnalyzer.spectral_centroid(magnitude)[0] == pytest.approx(16 / 64)

    def test_centroid_flat_is_mid_spectrum(self):
        centroid = FeatureAnalyzer.spectral_centroid(np.ones(100))[0]
        assert centroid == pytest.approx(49.5 / 100)

    def test_rolloff_bin_zero(self):
        magnitude = np.zeros(1024)
        magnitude[0] = 1.0
        assert FeatureAnalyzer.spectral_rolloff(magnitude)[0] == pytest.approx(0.0)

    def test_rolloff_flat(self):
        assert FeatureAnalyzer.spectral_rolloff(np.ones(1024))[0] == pytest.approx(0.85, abs=0.01)

    def test_rolloff_all_zero(self):
        assert FeatureAnalyzer.spectral_rolloff(np.zeros(1024))[0] == 1.0

    def test_rolloff_batch(self):
        magnitude = np.vstack([np.ones(100), np.zeros(100)])
        rolloff = FeatureAnalyzer.spectral_rolloff(magnitude)
        assert rolloff[0] == pytest.approx(0.845, abs=0.01)
        assert rolloff[1] == 1.0

    def test_zero_crossing_alternating(self):
        assert FeatureAnalyzer.zero_crossing_rate(np.array([1.0, -1.0, 1.0, -1.0]))[0] == 1.0

    def test_zero_crossing_constant(self):
        assert FeatureAnalyzer.zero_crossing_rate(np.ones(16))[0] == 0.0

    def test_zero_counts_as_positive(self):
        zcr = FeatureAnalyzer.zero_crossing_rate(np.array([0.0, 1.0, 0.0, -1.0, 0.0]))
        assert zcr[0] == pytest.approx(2 / 4)


class TestTimbre:
    def test_filter_bank_layout(self):
        bank = linear_filter_bank(1024)
        assert bank.shape == (26, 1024)
        assert np.flatnonzero(bank[0]).tolist() == list(range(0, (2 * 1024) // 26))
        assert np.flatnonzero(bank[25])[0] == (25 * 1024) // 26
        assert np.flatnonzero(bank[25])[-1] == 1023
        # Neighbouring filters share half of their span
        assert np.any(bank[3] * bank[4])

    def test_matches_closed_form(self):
        magnitude = np.random.default_rng(5).uniform(0, 2, 1024)
        bank = linear_filter_bank(1024)
        energies = bank @ magnitude
        log_e = np.log(np.maximum(energies, 1e-10))
        expected = [
            sum(log_e[j] * np.cos(np.pi * c * (j + 0.5) / 26) for j in range(26))
            for c in range(13)
        ]
        np.testing.assert_allclose(FeatureAnalyzer.timbre(magnitude)[0], expected, atol=1e-9)

    def test_silent_spectrum_uses_log_floor(self):
        coeffs = FeatureAnalyzer.timbre(np.zeros((1, 1024)))[0]
        assert coeffs.shape == (13,)
        assert coeffs[0] == pytest.approx(26 * np.log(1e-10))
        np.testing.assert_allclose(coeffs[1:], 0.0, atol=1e-9)

    def test_shape_for_batch(self):
        assert FeatureAnalyzer.timbre(np.ones((4, 512))).shape == (4, 13)


class TestAnalyze:
    def test_pure_tone_frames(self, pure_sine, analyzer):
        y, _ = pure_sine
        frames = frame_signal(y, AnalysisParams())[40:44]
        features = analyzer.analyze(frames)

        assert isinstance(features, SpectralFeatures)
        assert len(features) == 4
        np.testing.assert_allclose(features.frequency, 440.0, atol=analyzer.bin_width)
        assert features.beat_types == ("mid",) * 4
        assert np.all((features.spectral_centroid >= 0) & (features.spectral_centroid <= 1))
        assert np.all((features.spectral_rolloff >= 0) & (features.spectral_rolloff <= 1))
        assert features.timbre.shape == (4, 13)

    def test_zero_crossing_uses_raw_samples(self, pure_sine, analyzer):
        """440 Hz crosses zero ~880 times per second regardless of windowing."""
        y, sr = pure_sine
        frames = frame_signal(y, AnalysisParams())[50:51]
        zcr = analyzer.analyze(frames).zero_crossing_rate[0]
        assert zcr == pytest.approx(2 * 440 / sr, rel=0.1)
