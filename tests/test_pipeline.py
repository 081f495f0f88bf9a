"""End-to-end tests for the analysis pipeline."""

import math

import numpy as np
import pytest

from beatscope import AnalysisParams, InputError, SampleBuffer, analyze_audio, analyze_buffer
from beatscope.core.framer import count_frames
from beatscope.pipeline import AudioPipeline


def _compress(labels):
    runs = []
    for label in labels:
        if not runs or runs[-1] != label:
            runs.append(label)
    return runs


class TestPureTone:
    def test_every_retained_frame_is_440_mid(self, pure_sine):
        y, sr = pure_sine
        output = analyze_audio(y, sr, window_size=2048, hop_size=512)
        bin_width = sr / 2048

        assert len(output) > 0
        for r in output:
            assert abs(r.frequency - 440.0) <= bin_width
            assert r.beat_type == "mid"
        assert output.summary.mid_count == output.summary.frame_count

    def test_value_ranges(self, pure_sine):
        y, sr = pure_sine
        output = analyze_audio(y, sr)
        for r in output:
            assert 0.05 <= r.intensity <= 1.0
            assert 0.0 <= r.frequency <= sr / 2
            assert 0.0 <= r.spectral_centroid <= 1.0
            assert 0.0 <= r.spectral_rolloff <= 1.0
            assert 0.0 <= r.zero_crossing_rate <= 1.0
            assert len(r.timbre) == 13
            assert all(math.isfinite(c) for c in r.timbre)

    def test_rising_envelope_drops_quiet_start(self, pure_sine):
        """The quietest opening frames fall under the gate."""
        y, sr = pure_sine
        output = analyze_audio(y, sr)
        assert output.results[0].frame_index > 0
        assert output.results[-1].frame_index == output.total_frames - 1


class TestSilence:
    def test_all_zero_buffer(self, silence):
        y, sr = silence
        output = analyze_audio(y, sr)
        assert len(output) == 0
        assert output.summary.frame_count == 0
        assert output.summary.average_intensity == 0.0
        assert not math.isnan(output.summary.average_intensity)
        assert output.total_frames == count_frames(len(y), AnalysisParams())

    def test_short_buffer_is_not_an_error(self):
        output = analyze_audio(np.ones(1000) * 0.1, 44100)
        assert len(output) == 0
        assert output.total_frames == 0
        assert output.duration == pytest.approx(1000 / 44100)

    def test_constant_level_has_no_dynamic_range(self):
        output = analyze_audio(np.full(8192, 0.3), 8000, window_size=512, hop_size=256)
        assert output.total_frames > 0
        assert len(output) == 0


class TestTwoTone:
    def test_bands_follow_tone_segments(self, two_tone):
        y, sr, segments = two_tone
        output = analyze_audio(y, sr, window_size=2048, hop_size=512)
        window_sec = 2048 / sr

        checked = 0
        for r in output:
            start, end = r.timestamp, r.timestamp + window_sec
            for seg_start, seg_end, expected in segments:
                if start >= max(seg_start, 0.05) and end <= seg_end:
                    assert r.beat_type == expected, f"frame at {start:.3f}s"
                    checked += 1
        assert checked > 0.5 * len(output)

    def test_transitions_align_with_boundaries(self, two_tone):
        y, sr, segments = two_tone
        output = analyze_audio(y, sr)
        window_sec = 2048 / sr

        assert _compress(output.beat_types) == ["low", "high", "low", "high"]

        boundaries = [seg[0] for seg in segments[1:]]
        changes = [
            cur.timestamp
            for prev, cur in zip(output.results, output.results[1:])
            if cur.beat_type != prev.beat_type
        ]
        assert len(changes) == len(boundaries)
        for change, boundary in zip(changes, boundaries):
            assert boundary - window_sec <= change <= boundary + window_sec

    def test_summary_counts(self, two_tone):
        y, sr, _ = two_tone
        summary = analyze_audio(y, sr).summary
        assert summary.low_count > 0
        assert summary.high_count > 0
        assert summary.low_count + summary.mid_count + summary.high_count == summary.frame_count
        assert 0.0 < summary.average_intensity <= 1.0


class TestInvariants:
    @pytest.mark.parametrize("n_samples", [2048, 2560, 10000, 22050 * 2 + 17])
    def test_frame_count_and_ordering(self, noise, n_samples):
        y, sr = noise
        y = y[:n_samples]
        output = analyze_audio(y, sr, window_size=1024, hop_size=256)
        expected = max(0, (n_samples - 1024) // 256)

        assert output.total_frames == expected
        indices = [r.frame_index for r in output]
        assert indices == sorted(set(indices))
        assert all(0 <= i < expected for i in indices)
        timestamps = output.timestamps
        assert np.all(np.diff(timestamps) > 0)
        np.testing.assert_allclose(timestamps, np.array(indices) * 256 / sr)

    def test_idempotent(self, noise):
        y, sr = noise
        first = analyze_audio(y, sr)
        second = analyze_audio(y, sr)
        assert first == second

    def test_batch_size_does_not_change_output(self, noise):
        y, sr = noise
        buffer = SampleBuffer(samples=y, sample_rate=sr)
        params = AnalysisParams(window_size=512, hop_size=128)
        one = analyze_buffer(buffer, params, batch_size=1)
        many = analyze_buffer(buffer, params, batch_size=10000)
        assert [r.frame_index for r in one] == [r.frame_index for r in many]
        for a, b in zip(one, many):
            assert a.frequency == b.frequency
            assert a.intensity == pytest.approx(b.intensity)
            np.testing.assert_allclose(a.timbre, b.timbre, atol=1e-9)

    def test_caller_buffer_untouched(self, noise):
        y, sr = noise
        before = y.copy()
        analyze_audio(y, sr)
        np.testing.assert_array_equal(y, before)
        assert y.flags.writeable

    def test_min_max_rms_reported(self, two_tone):
        y, sr, _ = two_tone
        output = analyze_audio(y, sr)
        assert output.min_rms == 0.0
        assert output.max_rms > 0.0


class TestInputErrors:
    def test_non_power_of_two_window(self, noise):
        y, sr = noise
        with pytest.raises(InputError):
            analyze_audio(y, sr, window_size=1000)

    def test_hop_larger_than_window(self, noise):
        y, sr = noise
        with pytest.raises(InputError):
            analyze_audio(y, sr, window_size=512, hop_size=1024)

    def test_stereo_rejected(self):
        with pytest.raises(InputError):
            analyze_audio(np.zeros((2, 4096)), 44100)

    def test_nan_rejected(self):
        y = np.zeros(4096)
        y[100] = np.nan
        with pytest.raises(InputError):
            analyze_audio(y, 44100)

    @pytest.mark.parametrize("sr", [0, -44100, 44100.5, None])
    def test_bad_sample_rate(self, sr):
        with pytest.raises(InputError):
            analyze_audio(np.zeros(4096), sr)


class TestAudioPipeline:
    def test_analyze_buffer(self, pure_sine):
        y, sr = pure_sine
        pipeline = AudioPipeline(window_size=1024, hop_size=512)
        output = pipeline.analyze(SampleBuffer(samples=y, sample_rate=sr))
        assert output.params == AnalysisParams(window_size=1024, hop_size=512)
        assert output.total_frames == count_frames(len(y), output.params)

    def test_invalid_params_rejected_at_construction(self):
        with pytest.raises(InputError):
            AudioPipeline(window_size=3000)
