import numpy as np
import pytest

from ndarena import (
    ONES,
    ZEROS,
    ConstantInitializer,
    Context,
    DataType,
    Initializer,
    NDManager,
    NormalInitializer,
    Shape,
    UniformInitializer,
)
from ndarena.exceptions import InvalidArgumentError


class ArangeInitializer:
    def initialize(self, manager, shape, dtype):
        return manager.create_from(np.arange(shape.size()).reshape(shape.dims), dtype=dtype)


class TestInitializers:
    def setup_method(self):
        self.manager = NDManager.new_base_manager()

    def teardown_method(self):
        self.manager.close()

    def test_builtins_satisfy_protocol(self):
        assert isinstance(ZEROS, Initializer)
        assert isinstance(UniformInitializer(), Initializer)
        assert isinstance(ArangeInitializer(), Initializer)

    def test_zeros_and_ones(self):
        zeros = ZEROS.initialize(self.manager, Shape(2, 2), DataType.FLOAT32)
        ones = ONES.initialize(self.manager, Shape(3), DataType.INT64)
        assert zeros.to_list() == [0.0] * 4
        assert ones.to_list() == [1, 1, 1]
        assert zeros.manager is self.manager

    def test_constant(self):
        array = ConstantInitializer(0.5).initialize(self.manager, Shape(2), DataType.FLOAT64)
        assert array.to_list() == [0.5, 0.5]
        assert array.context == self.manager.context

    def test_constant_boolean(self):
        array = ONES.initialize(self.manager, Shape(2), DataType.BOOLEAN)
        assert array.to_list() == [True, True]

    def test_uses_manager_context(self):
        child = self.manager.new_sub_manager(Context.cpu(1))
        array = NormalInitializer().initialize(child, Shape(4), DataType.FLOAT32)
        assert array.context == Context.cpu(1)

    def test_uniform_is_reproducible_with_seeded_generator(self):
        first = UniformInitializer(-1.0, 1.0, rng=np.random.default_rng(7))
        second = UniformInitializer(-1.0, 1.0, rng=np.random.default_rng(7))
        a = first.initialize(self.manager, Shape(10), DataType.FLOAT32).to_numpy()
        b = second.initialize(self.manager, Shape(10), DataType.FLOAT32).to_numpy()
        assert np.array_equal(a, b)
        assert np.all(a >= -1.0) and np.all(a <= 1.0)

    def test_normal_statistics(self):
        initializer = NormalInitializer(mean=3.0, sigma=0.5, rng=np.random.default_rng(0))
        values = initializer.initialize(self.manager, Shape(10000), DataType.FLOAT64).to_numpy()
        assert abs(values.mean() - 3.0) < 0.05
        assert abs(values.std() - 0.5) < 0.05

    @pytest.mark.parametrize("dtype", [DataType.INT32, DataType.BOOLEAN, DataType.UINT8])
    def test_random_rejects_non_floating(self, dtype):
        with pytest.raises(InvalidArgumentError, match="requires a floating data type"):
            UniformInitializer().initialize(self.manager, Shape(2), dtype)
        assert self.manager.arrays == []

    def test_invalid_parameters(self):
        with pytest.raises(InvalidArgumentError):
            UniformInitializer(1.0, -1.0)
        with pytest.raises(InvalidArgumentError):
            NormalInitializer(sigma=-1.0)

    def test_custom_initializer(self):
        array = ArangeInitializer().initialize(self.manager, Shape(2, 2), DataType.INT32)
        assert array.to_numpy().tolist() == [[0, 1], [2, 3]]


class TestRandomInitializerBase:
    def test_sampler_is_abstract(self):
        from ndarena.initializers import _RandomInitializer

        class NoSampler(_RandomInitializer):
            pass

        with pytest.raises(TypeError):
            NoSampler()
