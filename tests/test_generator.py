"""
Tests for the random architecture generator.
"""

import pytest

from evonas.core import LayerRole
from evonas.evolution import ArchitectureGenerator
from evonas.exceptions import InvalidArchitectureError, InvalidArgumentError


def test_generated_architectures_are_valid() -> None:
    for seed in range(25):
        generator = ArchitectureGenerator(seed=seed)
        architecture = generator.generate_random(4, 15, class_count=10)
        assert architecture.validate()
        assert architecture[-1].role is LayerRole.OUTPUT
        assert architecture[-1].params.num_classes == 10
        assert architecture.check_shape_compatibility(1, 64, 64)

        first_dense = architecture.index_of_first(LayerRole.DENSE)
        flatten = architecture.index_of_first(LayerRole.FLATTEN)
        assert 0 <= flatten < first_dense
        assert all(layer.role not in (LayerRole.CONV, LayerRole.POOL) for layer in architecture.layers[flatten:])


def test_six_layer_request_is_reproducible_for_a_seed() -> None:
    first = ArchitectureGenerator(seed=1234).generate(6, 10)
    second = ArchitectureGenerator(seed=1234).generate(6, 10)
    assert first.summary() == second.summary()

    counts = first.layer_counts()
    # d = 1 because floor(6 / 3) = 2 leaves a single choice; (6 - 1) // 2 = 2 pairs fit in 64px.
    assert counts[LayerRole.DENSE] == 1
    assert counts[LayerRole.CONV] == 2
    assert counts[LayerRole.POOL] == 2
    assert len(first) == 7
    assert first.name == "RandomArch_7L"


def test_dense_tower_shrinks_and_last_dense_has_no_activation() -> None:
    architecture = ArchitectureGenerator(seed=3).generate(15, 5, name="tower")
    assert architecture.name == "tower"
    dense = [layer for layer in architecture if layer.role is LayerRole.DENSE]
    assert dense[0].params.units <= 256
    assert dense[-1].activation_name == "none"
    assert all(layer.params.units >= 32 for layer in dense[1:])
    assert [layer.params.dropout for layer in dense] == [min(0.2 + 0.15 * i, 0.5) for i in range(len(dense))]


def test_conv_filters_are_capped() -> None:
    for seed in range(25):
        architecture = ArchitectureGenerator(seed=seed).generate(15, 3)
        assert all(layer.params.filters <= 512 for layer in architecture if layer.role is LayerRole.CONV)


def test_too_few_layers_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        ArchitectureGenerator(seed=0).generate(2, 10)


def test_tiny_images_cannot_fit_a_conv_pool_pair() -> None:
    with pytest.raises(InvalidArchitectureError):
        ArchitectureGenerator(image_size=6, seed=0).generate(6, 10)


def test_random_layer_roles() -> None:
    generator = ArchitectureGenerator(seed=9)
    conv = generator.random_layer(LayerRole.CONV)
    assert conv.role is LayerRole.CONV and 8 <= conv.params.filters <= 64
    dense = generator.random_layer(LayerRole.DENSE)
    assert dense.role is LayerRole.DENSE and 32 <= dense.params.units <= 256
    assert generator.random_layer().role in (LayerRole.CONV, LayerRole.POOL, LayerRole.DENSE)
    with pytest.raises(InvalidArgumentError):
        generator.random_layer(LayerRole.OUTPUT)
