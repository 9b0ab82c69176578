import math

import numpy as np
import pytest

from bpnet.core.activations import sigmoid, sigmoid_derivative
from bpnet.core.errors import (
    DimensionMismatch,
    IndexOutOfRange,
    InvalidTopology,
    MalformedWeightData,
)
from bpnet.core.network import BPNetwork


def _sig(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-x))


def _dsig(a: float) -> float:
    return _sig(a) * (1.0 - _sig(a))


def test_construction_shapes_and_initial_state():
    net = BPNetwork(0.1, 0.5, [4, 8, 8, 16], seed=0)
    state = net.state_dict()
    assert net.topology == (4, 8, 8, 16)
    assert state["W1"].shape == (8, 5)
    assert state["W2"].shape == (8, 9)
    assert state["W3"].shape == (16, 9)
    assert "W0" not in state
    assert net.parameter_count() == 8 * 5 + 8 * 9 + 16 * 9
    for layer in (1, 2, 3):
        weights = state[f"W{layer}"]
        assert np.all(weights >= -1.0) and np.all(weights < 1.0)
        assert not np.any(state[f"dW{layer}"])


def test_seeded_construction_is_reproducible():
    a = BPNetwork(0.1, 0.5, [3, 4, 2], seed=42)
    b = BPNetwork(0.1, 0.5, [3, 4, 2], seed=42)
    assert a.export_weights() == b.export_weights()


@pytest.mark.parametrize("topology", [[], [3], [3, 0, 1], [2, -1], [2, 1.5], [2, True]])
def test_invalid_topology(topology):
    with pytest.raises(InvalidTopology):
        BPNetwork(0.1, 0.5, topology)


def test_non_finite_rates_rejected():
    with pytest.raises(ValueError):
        BPNetwork(float("nan"), 0.5, [2, 1])
    with pytest.raises(ValueError):
        BPNetwork(0.1, float("inf"), [2, 1])


def test_forward_concrete_scenario():
    net = BPNetwork(0.1, 0.5, [2, 2, 1])
    net.import_weights("0.5;0.5;0;0.5;0.5;0;0.5;0.5;0;")

    out = net.forward([0.0, 0.0])
    assert out.shape == (1,)
    # hidden units sit at sigmoid(0) = 0.5, the output sums 0.5 * 0.5 twice.
    assert net.read_output(0) == pytest.approx(_sig(0.5 * 0.5 + 0.5 * 0.5), abs=1e-12)

    net.forward([1.0, 1.0])
    hidden = _sig(1.0)
    assert net.read_output(0) == pytest.approx(_sig(hidden * 0.5 * 2), abs=1e-12)


def test_forward_uses_trailing_bias():
    net = BPNetwork(0.1, 0.5, [1, 1])
    net.import_weights("2;-3;")
    net.forward([0.0])
    assert net.read_output(0) == pytest.approx(_sig(-3.0))
    net.forward([1.5])
    assert net.read_output(0) == pytest.approx(_sig(2.0 * 1.5 - 3.0))


def test_forward_is_deterministic():
    net = BPNetwork(0.1, 0.5, [3, 5, 4, 2], seed=3)
    x = [0.2, -1.0, 3.5]
    first = net.forward(x)
    net.forward([0.0, 0.0, 0.0])
    second = net.forward(x)
    assert np.array_equal(first, second)


def test_activations_stay_inside_unit_interval():
    rng = np.random.default_rng(11)
    for seed in range(10):
        net = BPNetwork(0.1, 0.5, [4, 6, 3], seed=seed)
        for _ in range(10):
            out = net.forward(rng.uniform(-5.0, 5.0, size=4))
            assert np.all(out > 0.0) and np.all(out < 1.0)


def test_forward_returns_copy():
    net = BPNetwork(0.1, 0.5, [2, 2], seed=0)
    out = net.forward([1.0, 0.0])
    out[:] = 42.0
    assert net.read_output(0) != 42.0
    assert not np.array_equal(net.outputs, out)


def test_dimension_checks():
    net = BPNetwork(0.1, 0.5, [3, 2], seed=0)
    with pytest.raises(DimensionMismatch):
        net.forward([1.0, 2.0])
    with pytest.raises(DimensionMismatch):
        net.forward([[1.0, 2.0, 3.0]])
    net.forward([1.0, 2.0, 3.0])
    with pytest.raises(DimensionMismatch):
        net.mean_square_error([1.0])
    with pytest.raises(DimensionMismatch):
        net.train([1.0, 2.0, 3.0], [1.0, 0.0, 0.0])


def test_read_output_bounds():
    net = BPNetwork(0.1, 0.5, [2, 3], seed=0)
    net.forward([0.0, 1.0])
    net.read_output(2)
    for index in (-1, 3, 1.0, True):
        with pytest.raises(IndexOutOfRange):
            net.read_output(index)


def test_mean_square_error_formula():
    net = BPNetwork(0.1, 0.5, [1, 1])
    # bias chosen so that the output activation is exactly 0.8
    net.import_weights(f"0;{math.log(4.0)!r};")
    net.forward([0.0])
    assert net.read_output(0) == pytest.approx(0.8, abs=1e-9)
    assert net.mean_square_error([1.0]) == pytest.approx(0.04, abs=1e-9)


def test_mean_square_error_averages_over_outputs():
    net = BPNetwork(0.1, 0.5, [1, 2])
    net.import_weights("0;0;0;0;")
    net.forward([1.0])
    assert net.mean_square_error([1.0, 0.0]) == pytest.approx(0.25)


def test_single_train_step_matches_hand_computation():
    a, c, d, e = 0.3, -0.2, 0.7, 0.1
    lr = 0.25
    net = BPNetwork(lr, 0.0, [1, 1, 1])
    net.import_weights(f"{a};{c};{d};{e};")
    x, t = 0.9, 1.0

    hidden = _sig(a * x + c)
    out = _sig(d * hidden + e)
    delta_out = _dsig(out) * (t - out)
    delta_hidden = _dsig(hidden) * delta_out * d

    net.train([x], [t])
    state = net.state_dict()
    assert state["W2"][0, 0] == pytest.approx(d + lr * delta_out * hidden, abs=1e-12)
    assert state["W2"][0, 1] == pytest.approx(e + lr * delta_out, abs=1e-12)
    assert state["W1"][0, 0] == pytest.approx(a + lr * delta_hidden * x, abs=1e-12)
    assert state["W1"][0, 1] == pytest.approx(c + lr * delta_hidden, abs=1e-12)
    assert state["dW2"][0, 1] == pytest.approx(lr * delta_out, abs=1e-12)
    assert state["dW1"][0, 0] == pytest.approx(lr * delta_hidden * x, abs=1e-12)


def test_momentum_is_applied_before_fresh_step():
    lr, momentum = 0.1, 0.5
    net = BPNetwork(lr, momentum, [1, 1])
    net.import_weights("0.5;0;")

    out1 = _sig(0.5)
    change1 = lr * _dsig(out1) * (1.0 - out1)
    net.train([1.0], [1.0])
    state = net.state_dict()
    w1 = 0.5 + change1
    assert state["W1"][0, 0] == pytest.approx(w1, abs=1e-12)
    assert state["dW1"][0, 0] == pytest.approx(change1, abs=1e-12)

    # second step: forward uses w1/b1, then momentum, then the new change
    b1 = change1
    out2 = _sig(w1 + b1)
    change2 = lr * _dsig(out2) * (1.0 - out2)
    net.train([1.0], [1.0])
    state = net.state_dict()
    assert state["W1"][0, 0] == pytest.approx(w1 + momentum * change1 + change2, abs=1e-12)
    assert state["W1"][0, 1] == pytest.approx(b1 + momentum * change1 + change2, abs=1e-12)
    # history holds only the latest change, not an accumulated one
    assert state["dW1"][0, 0] == pytest.approx(change2, abs=1e-12)


def test_sigmoid_derivative_is_taken_at_the_activation():
    assert sigmoid_derivative(0.0) == pytest.approx(0.25)
    a = 0.73
    assert sigmoid_derivative(a) == pytest.approx(sigmoid(a) * (1.0 - sigmoid(a)))
    assert sigmoid(-1000.0) == 0.0


def test_train_step_descends_for_most_initialisations():
    rng = np.random.default_rng(5)
    improved = 0
    trials = 20
    for seed in range(trials):
        net = BPNetwork(0.01, 0.9, [3, 4, 1], seed=seed)
        x = rng.uniform(-1.0, 1.0, size=3)
        t = rng.uniform(0.0, 1.0, size=1)
        net.forward(x)
        before = net.mean_square_error(t)
        net.train(x, t)
        net.forward(x)
        after = net.mean_square_error(t)
        improved += int(after < before)
    assert improved >= trials - 1


def test_repeated_training_learns_a_sample():
    net = BPNetwork(0.5, 0.5, [2, 4, 2], seed=1)
    x, t = [1.0, 0.0], [1.0, 0.0]
    net.forward(x)
    start = net.mean_square_error(t)
    for _ in range(500):
        net.train(x, t)
    assert net.mean_square_error(t) < start / 10


def test_export_import_round_trip_between_engines():
    source = BPNetwork(0.1, 0.5, [4, 6, 3], seed=1)
    target = BPNetwork(0.1, 0.5, [4, 6, 3], seed=2)
    target.import_weights(source.export_weights())

    src_state = source.state_dict()
    dst_state = target.state_dict()
    for key in ("W1", "W2"):
        assert np.max(np.abs(src_state[key] - dst_state[key])) <= 1e-9

    rng = np.random.default_rng(0)
    for _ in range(5):
        x = rng.uniform(-2.0, 2.0, size=4)
        assert np.allclose(source.forward(x), target.forward(x), atol=1e-9)


def test_export_order_is_unit_major_bias_last():
    net = BPNetwork(0.1, 0.5, [2, 2, 1])
    text = "1;2;3;4;5;6;7;8;9;"
    net.import_weights(text)
    state = net.state_dict()
    assert state["W1"].tolist() == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]
    assert state["W2"].tolist() == [[7.0, 8.0, 9.0]]
    assert net.export_weights() == text


@pytest.mark.parametrize("text", ["0.1;0.2;", "1;" * 10, "1;2;3;4;x;6;7;8;9;", ""])
def test_import_failure_leaves_weights_unchanged(text):
    net = BPNetwork(0.1, 0.5, [2, 2, 1], seed=4)
    before = net.export_weights()
    with pytest.raises(MalformedWeightData):
        net.import_weights(text)
    assert net.export_weights() == before


def test_import_keeps_weight_change_history():
    net = BPNetwork(0.1, 0.5, [2, 1], seed=0)
    net.train([1.0, 1.0], [0.0])
    history = net.state_dict()["dW1"]
    net.import_weights("0;0;0;")
    assert np.array_equal(net.state_dict()["dW1"], history)
    net.reset_momentum()
    assert not np.any(net.state_dict()["dW1"])


def test_state_dict_round_trip_and_validation():
    a = BPNetwork(0.1, 0.5, [3, 2, 1], seed=0)
    a.train([1.0, 0.0, 1.0], [1.0])
    b = BPNetwork(0.1, 0.5, [3, 2, 1], seed=9)
    b.load_state_dict(a.state_dict())
    for key, value in a.state_dict().items():
        assert np.array_equal(b.state_dict()[key], value)

    state = dict(a.state_dict())
    state["W2"] = np.zeros((2, 2))
    with pytest.raises(DimensionMismatch):
        b.load_state_dict(state)
    state.pop("W2")
    with pytest.raises(KeyError):
        b.load_state_dict(state)


def test_engines_do_not_share_state():
    a = BPNetwork(0.1, 0.5, [2, 2], seed=0)
    b = BPNetwork(0.1, 0.5, [2, 2], seed=0)
    a.train([1.0, 0.0], [0.0, 1.0])
    assert a.export_weights() != b.export_weights()
    a.state_dict()["W1"][:] = 0.0
    assert np.any(a.state_dict()["W1"])


def test_describe_reports_architecture():
    net = BPNetwork(0.25, 0.75, [3, 4, 2], seed=0)
    description = net.describe()
    assert description.topology == (3, 4, 2)
    assert description.learn_rate == 0.25
    assert description.momentum == 0.75
