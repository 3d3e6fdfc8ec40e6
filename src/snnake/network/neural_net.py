"""
Feed-Forward Neural Network Module

This module implements a fully connected feed-forward network, stored as an
ordered list of weight matrices, one per transition between consecutive layers.
Matrix i has shape (layer_sizes[i], layer_sizes[i+1]); there are no biases.

The network is trained by a genetic algorithm (see snnake.genetics), which only
needs forward propagation and a way to read / write all weights as one flat
vector. The cost function and its analytic gradient (backpropagation) are kept
so that the network can be verified numerically: the gradient is checked both
against finite differences and against autograd.

Classes:
    NeuralNet: Multi-layer feed-forward network built on Matrix
"""

import autograd.numpy as np  # type: ignore
from autograd import grad    # type: ignore
from typing   import TYPE_CHECKING, Iterable

from snnake.activations     import Activation, get_activation
from snnake.exceptions      import WeightSizeMismatch
from snnake.linalg          import BaseMatrix, Matrix
from snnake.network.weights import WeightDistribution
from snnake.rng             import RandomSource

if TYPE_CHECKING:
    from snnake.run.config import Config


def as_matrix(data) -> BaseMatrix:
    """
    Accept a Matrix, a 2D array-like (one sample per row), or a 1D array-like
    (a single sample) and return it as a matrix.
    """
    if isinstance(data, BaseMatrix):
        return data
    array = np.asarray(data, dtype=float)
    if array.ndim == 1:
        array = array.reshape(1, -1)
    return Matrix(array)


class NeuralNet:
    """
    A fully connected feed-forward neural network.

    Public Attributes:
        matrices:     List of weight matrices, one per layer transition
        activation:   The Activation (function + derivative) applied at every layer
        distribution: Distribution used to sample fresh weights

    Public Properties:
        input_size:   Number of input neurons
        output_size:  Number of output neurons
        weight_count: Total number of weights, over all matrices
        layer_sizes:  Number of neurons in each layer, input layer first

    Public Methods:
        forward(input):              (activity, activation) pair for every layer
        output(input):               Activation of the last layer only
        cost(input, expected):       Per-output-neuron cost, summed over samples
        gradient(input, expected):   Gradient of the cost, one matrix per layer
        compute_gradients(...):      Same, flattened into a single list
        autograd_gradient(...):      Flattened gradient computed by autograd
        get_weights(), set_weights(values), set_weights_at(layer, values)
        randomize_weights()
    """

    def __init__(self,
                 *layer_sizes: int,
                 activation  : 'str | Activation'         = "sigmoid",
                 distribution: 'str | WeightDistribution' = WeightDistribution.GAUSSIAN,
                 rng         : RandomSource | None        = None):
        """
        Create a network with randomly sampled weights.

        Parameters:
            layer_sizes:  Number of neurons in each layer, from input to output
            activation:   Activation name (see snnake.activations) or Activation
            distribution: Distribution of the initial (and any re-sampled) weights
            rng:          Source of randomness; a fresh unseeded one if None
        """
        if len(layer_sizes) < 2:
            raise ValueError(f"A network needs at least an input and an output layer; got {list(layer_sizes)}")
        if any(size < 1 for size in layer_sizes):
            raise ValueError(f"Every layer needs at least one neuron; got {list(layer_sizes)}")

        self.activation  : Activation         = get_activation(activation)
        self.distribution: WeightDistribution = WeightDistribution.parse(distribution)
        self._rng        : RandomSource       = rng if rng is not None else RandomSource()

        self.matrices: list[Matrix] = [
            Matrix(self.distribution.sample(self._rng, (rows, cols)))
            for rows, cols in zip(layer_sizes[:-1], layer_sizes[1:])
        ]

    @classmethod
    def from_config(cls, config: 'Config', rng: RandomSource | None = None) -> 'NeuralNet':
        """Build a network from the [NETWORK] section of a configuration."""
        return cls(*config.layer_sizes,
                   activation=config.activation,
                   distribution=config.weight_distribution,
                   rng=rng)

    @property
    def input_size(self) -> int:
        return self.matrices[0].rows

    @property
    def output_size(self) -> int:
        return self.matrices[-1].cols

    @property
    def weight_count(self) -> int:
        return sum(matrix.size for matrix in self.matrices)

    @property
    def layer_sizes(self) -> list[int]:
        return [matrix.rows for matrix in self.matrices] + [self.output_size]

    def layer_size(self, i: int) -> int:
        return self.matrices[i].rows

    def __getitem__(self, i: int) -> Matrix:
        return self.matrices[i]

    def __len__(self) -> int:
        return len(self.matrices)

    def random_weight(self) -> float:
        """A single fresh weight, sampled from this network's distribution."""
        return self.distribution.sample(self._rng)

    # ---------------------------------------------------------------------
    # Weights
    # ---------------------------------------------------------------------

    def get_weights(self) -> list[float]:
        """All weights, layer by layer, each matrix in row-major order."""
        return Matrix.concat_to_list(self.matrices)

    def set_weights(self, values: Iterable[float]) -> 'NeuralNet':
        """
        Overwrite all weights with a flat vector laid out as get_weights() returns it.
        Nothing is written unless the vector has exactly 'weight_count' values.

        Raises:
            WeightSizeMismatch: if too few or too many values are given
        """
        values = [float(v) for v in values]
        count  = self.weight_count
        if len(values) < count:
            raise WeightSizeMismatch(f"Could not set weights for all matrices; size mismatch "
                                     f"({len(values)} given, {count} needed)")
        if len(values) > count:
            raise WeightSizeMismatch(f"Too many weights given in set_weights "
                                     f"({len(values)} given, {count} needed)")
        offset = 0
        for matrix in self.matrices:
            matrix.set(Matrix.create(matrix.rows, matrix.cols, values[offset:offset + matrix.size]))
            offset += matrix.size
        return self

    def set_weights_at(self, index: int, values: Iterable[float]) -> 'NeuralNet':
        """Overwrite the weights of a single layer transition."""
        matrix = self.matrices[index]
        values = [float(v) for v in values]
        if len(values) != matrix.size:
            raise WeightSizeMismatch(f"Layer {index} holds {matrix.size} weights, {len(values)} given")
        matrix.set(Matrix.create(matrix.rows, matrix.cols, values))
        return self

    def randomize_weights(self) -> 'NeuralNet':
        """Re-sample every weight from the network's distribution."""
        for matrix in self.matrices:
            matrix.set(Matrix(self.distribution.sample(self._rng, matrix.shape)))
        return self

    # ---------------------------------------------------------------------
    # Propagation
    # ---------------------------------------------------------------------

    def forward(self, input) -> list[tuple[Matrix, Matrix]]:
        """
        Propagate 'input' through the network and return the outputs at each stage.

        'input' holds one sample per row, so it must have 'input_size' columns;
        the number of rows is the number of samples.

        The returned list holds one (activity, activation) pair per layer transition,
        starting with the first hidden layer and ending with the output layer:
            activity   (z) = data . weight matrix
            activation (a) = f(z)
            data           = input at first, then the previous activation

        The very last activation is the network's output.
        """
        data   = as_matrix(input)
        layers = []
        for matrix in self.matrices:
            activity   = data @ matrix
            activation = activity.map(self.activation.activate)
            layers.append((activity, activation))
            data = activation
        return layers

    def output(self, input) -> Matrix:
        """Same as forward(), but only returns the activation of the last layer."""
        data = as_matrix(input)
        for matrix in self.matrices:
            data = (data @ matrix).map(self.activation.activate)
        return data

    def cost(self, input, expected) -> Matrix:
        """
        Sum over samples of 0.5 * (y - yHat)^2, for each output neuron.

        Returns:
            1 x output_size matrix
        """
        expected = as_matrix(expected)
        error    = expected - self.output(input)
        return error.map(lambda e: 0.5 * e ** 2).sum_rows()

    def gradient(self, input, expected) -> list[Matrix]:
        """
        Gradient of the cost with respect to every weight, by backpropagation.

        Let J be the cost, x the input, y the expected output and yHat the output.
        Forward propagation gives activities z_k and activations a_k for every layer k;
        a_0, which has no activity, is the input x, and the last activation is yHat.

        dJ/dW_i = -(y - yHat) * dyHat/dW_i, and going backwards layer by layer:
            dz_k/dW_{k-1}  = a_{k-1}          (since z_k = a_{k-1} . W_{k-1})
            dz_k/da_{k-1}  = W_{k-1}^T
            da_k/dz_k      = f'(z_k)

        The product accumulated from the output down to layer i+1 is kept as 'delta':
            delta_last = -(y - yHat) x f'(z_last)
            delta_k    = (delta_{k+1} . W_{k+1}^T) x f'(z_k)
            dJ/dW_k    = a_k^T . delta_k          (a_k being the layer's own input)

        where '.' is the matrix product and 'x' the cell by cell product.

        Returns:
            List of matrices, shaped like (and in the same order as) 'matrices'
        """
        expected = as_matrix(expected)
        layers   = self.forward(input)
        inputs   = [as_matrix(input)] + [activation for _, activation in layers]

        gradients = []
        delta     = -(expected - layers[-1][1])
        for i in range(len(self.matrices) - 1, -1, -1):
            if i < len(self.matrices) - 1:
                delta = delta @ self.matrices[i + 1].T
            delta = delta.scalar_multiply(layers[i][0].map(self.activation.prime))
            gradients.append(inputs[i].T @ delta)
        gradients.reverse()
        return gradients

    def compute_gradients(self, input, expected) -> list[float]:
        """Computes the gradient, then ravels and concatenates the resulting matrices."""
        return Matrix.concat_to_list(self.gradient(input, expected))

    def autograd_gradient(self, input, expected) -> list[float]:
        """
        Flattened gradient of the total cost, computed by autograd on a functional
        re-implementation of the forward pass. Used to verify gradient().
        """
        x          = as_matrix(input).to_array()
        y          = as_matrix(expected).to_array()
        shapes     = [matrix.shape for matrix in self.matrices]
        activate   = self.activation.activate

        def total_cost(weights):
            data   = x
            offset = 0
            for rows, cols in shapes:
                w       = np.reshape(weights[offset:offset + rows * cols], (rows, cols))
                offset += rows * cols
                data    = activate(np.dot(data, w))
            return 0.5 * np.sum((y - data) ** 2)

        gradient = grad(total_cost)(np.array(self.get_weights()))
        return [float(g) for g in gradient]

    # ---------------------------------------------------------------------
    # Comparison & display
    # ---------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        return (isinstance(other, NeuralNet) and
                len(self.matrices) == len(other.matrices) and
                all(m == n for m, n in zip(self.matrices, other.matrices)))

    __hash__ = None  # type: ignore

    def equals_within(self, other: 'NeuralNet', max_diff: float) -> bool:
        return (isinstance(other, NeuralNet) and
                len(self.matrices) == len(other.matrices) and
                all(m.equals_within(n, max_diff) for m, n in zip(self.matrices, other.matrices)))

    def __str__(self) -> str:
        lines = [f"NN: {len(self.matrices) + 1} layers",
                 f"{self.input_size} input neurons; {self.output_size} output neurons"]
        text  = "\n".join(lines)
        for matrix in self.matrices:
            text += str(matrix)
        return text
