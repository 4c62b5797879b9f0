"""
End-to-end scenarios across managers, initializers, checkpoints and formatting.
"""

import numpy as np

from ndarena import (
    Context,
    DataType,
    Engine,
    Model,
    NDManager,
    NormalInitializer,
    Shape,
    UniformInitializer,
    ZEROS,
    get_backend,
)


class TestArenaLifecycle:
    def test_scoped_intermediates_are_released(self):
        backend = get_backend(Context.cpu())
        live_before = backend.get_memory_info()['live_buffers']

        with NDManager.new_base_manager() as outer:
            result = outer.create(Shape(4), DataType.FLOAT32)
            with outer.new_sub_manager() as scope:
                for _ in range(5):
                    scope.create(Shape(128), DataType.FLOAT64)
                kept = scope.create_from(np.full(4, 2.0, dtype=np.float32))
                outer.attach(kept)
                assert backend.get_memory_info()['live_buffers'] == live_before + 7
            assert backend.get_memory_info()['live_buffers'] == live_before + 2
            result.set(kept)
            assert result.to_list() == [2.0] * 4

        assert backend.get_memory_info()['live_buffers'] == live_before

    def test_train_save_load_cycle(self, tmp_path):
        rng = np.random.default_rng(42)
        with Model("net") as model:
            for name, shape, initializer in [
                ('fc1_weight', Shape(4, 3), UniformInitializer(rng=rng)),
                ('fc1_bias', Shape(4), ZEROS),
                ('fc2_weight', Shape(2, 4), NormalInitializer(rng=rng)),
            ]:
                model.set_parameter(name, initializer.initialize(model.manager, shape, DataType.FLOAT32))
            expected = {name: array.to_numpy() for name, array in model.parameters.items()}
            model.save(tmp_path)
            model.save(tmp_path)

        with Engine.get_instance().load_model(tmp_path / "net-0002.params", "net") as loaded:
            assert loaded.epoch == 2
            for name, values in expected.items():
                assert np.array_equal(loaded.get_parameter(name).to_numpy(), values)
            text = str(loaded.get_parameter('fc1_bias'))
            assert text == "ND: (4) cpu(0) float32\n[0., 0., 0., 0.]\n"
