"""
Tests for the EM inference engine, the restart controller and the
experiment harness.

These tests check properties that must hold for any data set:
normalised motif columns, responsibilities that sum to one at every
iteration, reproducibility from a seed, exact recovery in the degenerate
one-window case and recovery of a planted motif.
"""

import numpy as np
import pytest

from motifem import discover_motif
from motifem.config import create_config
from motifem.distributions import is_normalized
from motifem.errors import InvalidConfiguration
from motifem.experiment import run_experiment, sweep
from motifem.inference import InferenceEngine
from motifem.ragged import ragged_from_list, ragged_from_strings
from motifem.restarts import RestartController, restart_rng


def test_pfm_columns_normalized(sampled_data):
    """Every restart returns a PFM whose columns sum to 1"""
    config = create_config(motif_length=8, restart_count=3, random_seed=11, iteration_cap=50)
    outcome = RestartController(config).run(sampled_data.sequences)

    assert len(outcome.results) == 3
    for result in outcome.results:
        assert result.pfm.shape == (4, 8)
        assert np.all(result.pfm > 0)
        assert is_normalized(result.pfm)


@pytest.mark.parametrize("init_strategy", ["sites", "prior"])
def test_responsibilities_sum_to_one_every_iteration(sampled_data, init_strategy):
    states = []

    def record(state):
        totals = np.array([state.hypothesis_weights(i).sum() for i in range(state.absent.size)])
        states.append((state.iteration, totals, state.pfm.copy()))

    config = create_config(motif_length=8, random_seed=3, iteration_cap=30, init_strategy=init_strategy)
    result = InferenceEngine(config).run(sampled_data.sequences, callback=record)

    assert len(states) == result.iterations + 1
    assert len(result.log_likelihood_trace) == len(states)
    for _, totals, pfm in states:
        assert totals.shape == (20,)
        np.testing.assert_allclose(totals, 1.0, atol=1e-9)
        assert is_normalized(pfm)


def test_result_matches_final_pfm(sampled_data):
    """Returned responsibilities and log-likelihood belong to the returned PFM"""
    config = create_config(motif_length=8, random_seed=5, iteration_cap=40)
    engine = InferenceEngine(config)
    result = engine.run(sampled_data.sequences)

    present, absent, log_likelihood = engine.e_step(sampled_data.sequences, result.pfm)
    np.testing.assert_allclose(result.responsibilities.data, present.data)
    np.testing.assert_allclose(result.absent, absent)
    assert result.log_likelihood == pytest.approx(log_likelihood)
    assert result.log_likelihood_trace[-1] == pytest.approx(log_likelihood)
    assert np.all(result.best_positions() <= 40 - 8)


def test_engine_deterministic(sampled_data):
    config = create_config(motif_length=8, iteration_cap=50)
    engine = InferenceEngine(config)

    first = engine.run(sampled_data.sequences, rng=np.random.default_rng(42))
    second = engine.run(sampled_data.sequences, rng=np.random.default_rng(42))

    np.testing.assert_array_equal(first.pfm, second.pfm)
    assert first.log_likelihood == second.log_likelihood
    assert first.iterations == second.iterations


def test_restarts_deterministic_for_seed(sampled_data):
    """Same seed gives the same PFM, serially and in parallel"""
    serial = create_config(motif_length=8, restart_count=3, random_seed=99, iteration_cap=40)
    parallel = create_config(motif_length=8, restart_count=3, random_seed=99, iteration_cap=40, n_jobs=2)

    first = RestartController(serial).run(sampled_data.sequences)
    second = RestartController(serial).run(sampled_data.sequences)
    third = RestartController(parallel).run(sampled_data.sequences)

    np.testing.assert_array_equal(first.pfm, second.pfm)
    np.testing.assert_array_equal(first.pfm, third.pfm)
    np.testing.assert_array_equal(first.log_likelihoods, third.log_likelihoods)
    assert first.entropy == 99


def test_restart_streams_independent():
    a = restart_rng(7, 0).random(4)
    b = restart_rng(7, 1).random(4)
    assert not np.array_equal(a, b)
    np.testing.assert_array_equal(a, restart_rng(7, 0).random(4))


def test_unseeded_run_reports_entropy(sampled_data):
    config = create_config(motif_length=8, restart_count=1, iteration_cap=5)
    outcome = RestartController(config).run(sampled_data.sequences)
    assert outcome.entropy >= 0


def test_restart_selection(sampled_data):
    """The highest log-likelihood restart is selected"""
    config = create_config(motif_length=8, restart_count=4, random_seed=21, iteration_cap=50)
    outcome = RestartController(config).run(sampled_data.sequences)

    assert outcome.best_index == int(np.argmax(outcome.log_likelihoods))
    assert outcome.best is outcome.results[outcome.best_index]

    summary = outcome.summary()
    assert len(summary) == 4
    assert summary["selected"].sum() == 1
    assert summary.loc[summary["selected"], "restart"].iloc[0] == outcome.best_index


def test_initial_pfms(sampled_data, true_motif):
    config = create_config(motif_length=8, restart_count=2, random_seed=1, iteration_cap=50)
    controller = RestartController(config)

    outcome = controller.run(sampled_data.sequences, initial_pfms=[true_motif, true_motif])
    np.testing.assert_array_equal(outcome.results[0].pfm, outcome.results[1].pfm)

    with pytest.raises(ValueError):
        controller.run(sampled_data.sequences, initial_pfms=[true_motif])


def test_degenerate_single_window_recovery():
    """With p = 1 and M = L the estimate is the smoothed column frequency"""
    motif_length = 6
    n_seq = 60
    rows = np.empty((n_seq, motif_length), dtype=np.int8)
    for j in range(motif_length):
        majority = j % 4
        others = [s for s in range(4) if s != majority]
        rows[:40, j] = majority
        rows[40:, j] = [others[i % 3] for i in range(n_seq - 40)]
    sequences = ragged_from_list(list(rows))

    config = create_config(motif_length=motif_length, presence_prior=1.0, prior_strength=1.0, random_seed=8)
    result = InferenceEngine(config).run(sequences)

    counts = np.zeros((4, motif_length))
    for j in range(motif_length):
        counts[:, j] = np.bincount(rows[:, j], minlength=4)
    expected = (counts + 1.0) / (n_seq + 4.0)

    assert result.converged
    np.testing.assert_allclose(result.pfm, expected, atol=1e-9)
    np.testing.assert_array_equal(np.argmax(result.pfm, axis=0), np.arange(motif_length) % 4)
    np.testing.assert_array_equal(result.absent, 0.0)
    np.testing.assert_allclose(result.responsibilities.data, 1.0)
    np.testing.assert_array_equal(result.hypothesis_weights(0), [0.0, 1.0])


def test_motif_longer_than_sequences_rejected():
    calls = []
    config = create_config(motif_length=6)
    engine = InferenceEngine(config)

    with pytest.raises(InvalidConfiguration):
        engine.run(ragged_from_strings(["ACGTACGT", "ACGT"]), callback=calls.append)
    with pytest.raises(InvalidConfiguration):
        RestartController(config).run(ragged_from_strings(["ACG"]))
    assert calls == []


def test_unknown_symbols_rejected():
    engine = InferenceEngine(create_config(motif_length=3))
    with pytest.raises(InvalidConfiguration):
        engine.run(ragged_from_strings(["ACGNNACG"]))


def test_iteration_cap_reached(sampled_data):
    config = create_config(motif_length=8, random_seed=4, iteration_cap=1)
    result = InferenceEngine(config).run(sampled_data.sequences)

    assert not result.converged
    assert result.iterations == 1
    assert is_normalized(result.pfm)


def test_sites_table(sampled_data):
    config = create_config(motif_length=8, random_seed=2, iteration_cap=30)
    result = InferenceEngine(config).run(sampled_data.sequences)

    sites = result.sites(sampled_data.sequences)
    assert len(sites) == 20
    assert set(sites.columns) >= {"seq_index", "start", "end", "presence", "site"}
    assert all(len(site) == 8 for site in sites["site"])
    assert sites["presence"].between(0.0, 1.0).all()


def test_discover_motif_from_strings():
    sequences = ["TTACGTACTT", "GACGTACAAA", "CCCACGTACG", "ATATATACGT"]
    outcome = discover_motif(sequences, 6, restart_count=2, random_seed=0, background="estimate")

    assert outcome.pfm.shape == (4, 6)
    assert is_normalized(outcome.pfm)


def test_end_to_end_recovery():
    """Planted motif is recovered from 30 sequences of length 100"""
    result = run_experiment(30, 100, presence_prior=0.8, seed=1337, restart_count=5)

    assert result.score > 0.6
    assert len(result.consensus) == 8

    repeat = run_experiment(30, 100, presence_prior=0.8, seed=1337, restart_count=5)
    assert repeat.score == result.score


def test_sweep_rows():
    frame = sweep("count", values=(5, 10), seed=3, restart_count=1, iteration_cap=20)

    assert list(frame["sequence_count"]) == [5, 10]
    assert (frame["sequence_length"] == 50).all()
    assert frame["score"].between(0.0, 1.0).all()

    with pytest.raises(ValueError):
        sweep("width")


@pytest.mark.slow
def test_more_sequences_score_higher_on_average():
    """Mean score over seeds does not drop when N grows from 10 to 50"""
    small = [
        run_experiment(10, 50, seed=seed, restart_count=3).score for seed in range(20)
    ]
    large = [
        run_experiment(50, 50, seed=seed, restart_count=3).score for seed in range(20)
    ]
    assert np.mean(large) >= np.mean(small)


if __name__ == "__main__":
    pytest.main([__file__])
