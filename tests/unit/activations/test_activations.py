"""
Unit tests for the activation functions and their derivatives.
"""

import sys
import pytest
import numpy as np

from snnake.activations import (
    Activation,
    activations,
    get_activation,
    sigmoid_activation,
    sigmoid_prime,
    tanh_activation,
    tanh_prime,
    relu_activation,
    relu_prime,
    identity_activation,
    identity_prime,
)

MAX = sys.float_info.max


class TestActivationsDictionary:
    """Test lookup of activations by name."""

    def test_all_names_present(self):
        assert set(activations) == {'sigmoid', 'tanh', 'relu', 'identity'}

    def test_entries_are_activation_pairs(self):
        for name, activation in activations.items():
            assert isinstance(activation, Activation)
            assert activation.name == name
            assert callable(activation.activate)
            assert callable(activation.prime)

    def test_get_activation_by_name(self):
        assert get_activation('tanh').activate is tanh_activation

    def test_get_activation_passes_instances_through(self):
        activation = activations['relu']
        assert get_activation(activation) is activation

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match="Invalid activation function"):
            get_activation('softsign')


class TestSigmoid:
    """Test the sigmoid and its derivative at the extremes."""

    def test_sigmoid_max(self):
        assert sigmoid_activation(MAX) == pytest.approx(1.0, abs=1e-4)

    def test_sigmoid_min(self):
        assert sigmoid_activation(-MAX) == pytest.approx(0.0, abs=1e-4)

    def test_sigmoid_zero(self):
        assert sigmoid_activation(0.0) == pytest.approx(0.5)

    def test_sigmoid_prime_max(self):
        assert sigmoid_prime(MAX) == pytest.approx(0.0, abs=1e-4)

    def test_sigmoid_prime_min(self):
        assert sigmoid_prime(-99.0) == pytest.approx(0.0, abs=1e-4)

    def test_sigmoid_prime_zero(self):
        assert sigmoid_prime(0.0) == pytest.approx(0.25)

    def test_sigmoid_no_overflow_on_arrays(self):
        z = np.array([[-1e6, 0.0, 1e6]])
        result = sigmoid_activation(z)
        assert result.shape == (1, 3)
        assert np.all(np.isfinite(result))


class TestDerivatives:
    """Compare each derivative with a central difference."""

    @pytest.mark.parametrize("activate, prime", [
        (sigmoid_activation,  sigmoid_prime),
        (tanh_activation,     tanh_prime),
        (identity_activation, identity_prime),
    ])
    def test_prime_matches_central_difference(self, activate, prime):
        z   = np.array([-2.0, -0.5, 0.3, 1.7])
        eps = 1e-6
        numerical = (activate(z + eps) - activate(z - eps)) / (2 * eps)
        np.testing.assert_allclose(prime(z), numerical, atol=1e-6)

    def test_relu(self):
        z = np.array([-1.0, 0.0, 2.0])
        np.testing.assert_array_equal(relu_activation(z), [0.0, 0.0, 2.0])
        np.testing.assert_array_equal(relu_prime(z), [0.0, 0.0, 1.0])

    def test_identity_prime_keeps_shape(self):
        z = np.zeros((2, 3))
        assert identity_prime(z).shape == (2, 3)
