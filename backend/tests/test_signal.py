import math

import numpy as np
import pytest

from audioflow.models.artifact import SAMPLE_RATE, SynthesisRequest
from audioflow.models.recipe import Recipe
from audioflow.services.filters import OnePoleLowPass, one_pole_coefficient
from audioflow.services.noise import NoiseSource
from audioflow.services.synthesizer import (
    CLIP_DRIVE,
    MAX_GAIN,
    PULSE_GAIN,
    envelope,
    normalize_loudness,
    pulse_train,
    rms,
    soft_clip,
    synthesize,
)


def test_noise_source_draws_in_unit_interval() -> None:
    source = NoiseSource(seed=7)
    draws = source.block(10_000)
    assert draws.min() >= 0.0
    assert draws.max() < 1.0
    assert 0.45 < draws.mean() < 0.55
    assert 0.0 <= source.next() < 1.0


def test_noise_source_block_matches_sequential_draws() -> None:
    block = NoiseSource(seed=99).block(5, 2)
    single = NoiseSource(seed=99)
    sequential = np.array([[single.next(), single.next()] for _ in range(5)])
    assert np.array_equal(block, sequential)


def test_noise_source_seeds() -> None:
    assert np.array_equal(NoiseSource(1).block(64), NoiseSource(1).block(64))
    assert not np.array_equal(NoiseSource(1).block(64), NoiseSource(2).block(64))
    assert NoiseSource().seed != NoiseSource().seed


@pytest.mark.parametrize("cutoff", [1e-3, 1.0, 900.0, 3200.0, 11025.0, 22049.9])
def test_filter_coefficient_is_stable(cutoff: float) -> None:
    a = one_pole_coefficient(cutoff, SAMPLE_RATE)
    assert 0.0 < a < 1.0
    assert a == pytest.approx(math.exp(-2 * math.pi * cutoff / SAMPLE_RATE))


@pytest.mark.parametrize("cutoff", [0.0, -10.0, float("nan")])
def test_filter_rejects_non_positive_cutoff(cutoff: float) -> None:
    with pytest.raises(ValueError):
        OnePoleLowPass(cutoff)


def test_filter_block_matches_step_and_keeps_state() -> None:
    signal = np.random.default_rng(3).uniform(-1, 1, 256)

    stepped = OnePoleLowPass(1800.0)
    expected = np.array([stepped.step(x) for x in signal])

    blocked = OnePoleLowPass(1800.0)
    out = np.concatenate([blocked.process(signal[:100]), blocked.process(signal[100:])])

    assert np.allclose(out, expected)
    assert blocked.y == pytest.approx(stepped.y)


def test_filter_first_step_from_zero_state() -> None:
    lp = OnePoleLowPass(1000.0)
    assert lp.step(1.0) == pytest.approx(1.0 - lp.a)


def test_soft_clip_formula_and_bounds() -> None:
    assert soft_clip(0.0) == 0.0
    assert soft_clip(0.0, drive=0.5) == 0.0
    x = np.linspace(-0.9, 0.9, 19)
    assert np.allclose(soft_clip(x), np.tanh(x * CLIP_DRIVE) / np.tanh(CLIP_DRIVE))
    assert np.allclose(soft_clip(-x), -soft_clip(x))


@pytest.mark.parametrize("drive", [0.3, 0.5, 1.0, CLIP_DRIVE, 2.0, 4.0])
def test_soft_clip_stays_inside_unit_interval(drive: float) -> None:
    assert soft_clip(0.0, drive=drive) == 0.0
    extreme = np.array([1.0, -1.0, 3.0, -50.0, 1e9, -1e300])
    assert np.all(np.abs(soft_clip(extreme, drive=drive)) < 1.0)


def test_envelope_shape() -> None:
    env = envelope(1000, 100.0, 200.0)
    assert env[0] == 0.0
    assert env[50] == pytest.approx(0.5 ** 1.6)
    assert np.all(env[100:800] == 1.0)
    assert env[900] == pytest.approx(0.5 ** 1.6)
    assert env[-1] == pytest.approx((1 / 200) ** 1.6)


def test_envelope_overlapping_fades_multiply() -> None:
    env = envelope(100, 100.0, 100.0)
    i = 40
    assert env[i] == pytest.approx((i / 100) ** 1.6 * ((100 - i) / 100) ** 1.6)


def test_synthesize_length_and_range() -> None:
    request = SynthesisRequest(duration_sec=2.5, recipe=Recipe())
    noise = NoiseSource(seed=11)
    bed = synthesize(request, noise, OnePoleLowPass(request.recipe.noise_cutoff_hz))
    assert len(bed) == round(2.5 * SAMPLE_RATE)
    assert np.all(np.abs(bed) <= 1.0)
    assert bed[0] == 0.0


def test_synthesize_matches_per_sample_recurrence() -> None:
    recipe = Recipe.validate({"sub_hz": 62, "noise_cutoff_hz": 2400, "pulse_density": 0.2, "intro_sec": 1, "outro_sec": 2})
    request = SynthesisRequest(duration_sec=0.25, recipe=recipe)
    bed = synthesize(request, NoiseSource(seed=21), OnePoleLowPass(recipe.noise_cutoff_hz))

    rng = NoiseSource(seed=21)
    lp = OnePoleLowPass(recipe.noise_cutoff_hz)
    n = request.n_samples
    intro = recipe.intro_sec * SAMPLE_RATE
    outro = recipe.outro_sec * SAMPLE_RATE
    expected = []
    for i in range(n):
        t = i / SAMPLE_RATE
        noise = lp.step(rng.next() * 2 - 1) * 0.18
        drift = 0.8 + 0.4 * math.sin(2 * math.pi * 0.03 * t)
        sub = math.sin(2 * math.pi * recipe.sub_hz * drift * t) * 0.10
        pulse = 0.06 if rng.next() < recipe.pulse_density / SAMPLE_RATE else 0.0
        amp = 0.65 + 0.35 * math.sin(2 * math.pi * 0.015 * t)
        macro = 0.9 + 0.1 * math.sin(2 * math.pi * 0.007 * t)
        x = (noise + sub + pulse) * amp * macro
        if i < intro:
            x *= (i / intro) ** 1.6
        if i >= n - outro:
            x *= ((n - i) / outro) ** 1.6
        expected.append(math.tanh(x * 1.3) / math.tanh(1.3))

    assert len(bed) == n
    assert np.allclose(bed, expected, rtol=0.0, atol=1e-12)


def test_pulse_train_tracks_density() -> None:
    density = 0.2
    source = NoiseSource(seed=5)
    chunk = 100 * SAMPLE_RATE
    hits = 0
    for _ in range(20):
        pulses = pulse_train(source.block(chunk), density)
        assert set(np.unique(pulses)) <= {0.0, PULSE_GAIN}
        hits += int(np.count_nonzero(pulses))
    # 2000 s at 0.2 hits/s: 400 expected, std 20
    assert 300 <= hits <= 500


def test_pulse_train_threshold() -> None:
    trials = np.array([0.0, 0.1 / SAMPLE_RATE, 0.2 / SAMPLE_RATE, 0.5])
    assert pulse_train(trials, 0.2).tolist() == [PULSE_GAIN, PULSE_GAIN, 0.0, 0.0]


def test_normalize_hits_target_rms() -> None:
    signal = np.full(1000, 0.9)
    out = normalize_loudness(signal, -14.0)
    assert rms(out) == pytest.approx(10 ** (-14 / 20), rel=1e-6)


def test_normalize_caps_gain_and_peak() -> None:
    quiet = np.full(1000, 1e-4)
    assert np.allclose(normalize_loudness(quiet, -14.0), quiet * MAX_GAIN)

    silence = np.zeros(64)
    assert np.array_equal(normalize_loudness(silence, -16.0), silence)

    spike = np.zeros(10_000)
    spike[0] = 1.0
    out = normalize_loudness(spike, -14.0)
    assert np.max(np.abs(out)) == pytest.approx(0.99)
