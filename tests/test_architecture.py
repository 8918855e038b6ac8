"""
Tests for the architecture model.
"""

import pytest

from evonas.core import ArchitectureModel, LayerRole, LayerSpec
from evonas.exceptions import InvalidLayerError


def test_valid_architecture_passes_validation(simple_architecture: ArchitectureModel) -> None:
    assert simple_architecture.validate()
    assert simple_architecture[-1].role is LayerRole.OUTPUT
    assert simple_architecture.check_shape_compatibility(1, 64, 64)


def test_validation_rules() -> None:
    assert not ArchitectureModel("empty").validate()

    no_conv = ArchitectureModel("no_conv", [LayerSpec.flatten(), LayerSpec.dense("d", 32), LayerSpec.output("o", 3)])
    assert not no_conv.validate()

    output_not_last = ArchitectureModel(
        "misplaced", [LayerSpec.conv("c", 8), LayerSpec.output("o", 3), LayerSpec.flatten()]
    )
    assert not output_not_last.validate()

    two_outputs = ArchitectureModel(
        "twice", [LayerSpec.conv("c", 8), LayerSpec.flatten(), LayerSpec.output("o", 3), LayerSpec.output("o2", 3)]
    )
    assert not two_outputs.validate()

    dense_before_flatten = ArchitectureModel(
        "unflattened", [LayerSpec.conv("c", 8), LayerSpec.dense("d", 32), LayerSpec.flatten(), LayerSpec.output("o", 3)]
    )
    assert not dense_before_flatten.validate()

    no_dense = ArchitectureModel("minimal", [LayerSpec.conv("c", 8), LayerSpec.flatten(), LayerSpec.output("o", 3)])
    assert no_dense.validate()


def test_adding_an_invalid_layer_raises() -> None:
    model = ArchitectureModel("m")
    with pytest.raises(InvalidLayerError) as err:
        model.add_layer(LayerSpec.conv("c", 16, 4))
    assert err.value.context["layer"] == "c"
    with pytest.raises(InvalidLayerError):
        model.insert_layer(0, LayerSpec.dense("d", 0))
    assert len(model) == 0


def test_remove_layer_ignores_out_of_range(simple_architecture: ArchitectureModel) -> None:
    simple_architecture.remove_layer(42)
    simple_architecture.remove_layer(-1)
    assert len(simple_architecture) == 8
    simple_architecture.remove_layer(1)
    assert len(simple_architecture) == 7
    assert simple_architecture[1].name == "conv_2"


def test_role_queries(simple_architecture: ArchitectureModel) -> None:
    assert simple_architecture.index_of_first(LayerRole.DENSE) == 5
    assert simple_architecture.index_of_last(LayerRole.DENSE) == 6
    assert simple_architecture.index_of_first(LayerRole.OUTPUT) == 7
    assert ArchitectureModel("m").index_of_first(LayerRole.CONV) == -1
    counts = simple_architecture.layer_counts()
    assert counts[LayerRole.CONV] == 2
    assert counts[LayerRole.POOL] == 2
    assert counts[LayerRole.FLATTEN] == 1


def test_final_size_skips_the_output_layer(simple_architecture: ArchitectureModel) -> None:
    # 64 -> conv3 62 -> pool 31 -> conv5 27 -> pool 13 -> flatten -> dense 128 -> dense 64
    assert simple_architecture.calculate_final_size(1, 64, 64) == (64, 1, 1)
    conv_only = ArchitectureModel("c", [LayerSpec.conv("c", 16, 3), LayerSpec.pool("p"), LayerSpec.output("o", 3)])
    assert conv_only.calculate_final_size(1, 64, 64) == (16, 31, 31)


def test_shape_compatibility_detects_empty_maps() -> None:
    deep = ArchitectureModel(
        "deep",
        [LayerSpec.conv("c", 8, 3)] + [LayerSpec.pool(f"p{i}") for i in range(4)] + [LayerSpec.output("o", 2)],
    )
    assert deep.check_shape_compatibility(1, 64, 64)
    assert not deep.check_shape_compatibility(1, 16, 16)
    assert ArchitectureModel("single", [LayerSpec.pool("p")]).check_shape_compatibility(1, 1, 1)


def test_clone_is_independent(simple_architecture: ArchitectureModel) -> None:
    simple_architecture.accuracy = 91.5
    clone = simple_architecture.clone()
    assert clone.name == "simple_clone"
    assert clone.accuracy == 91.5
    assert clone.layers == simple_architecture.layers
    clone.remove_layer(1)
    clone.layers[0] = clone.layers[0].with_params(filters=99)
    assert len(simple_architecture) == 8
    assert simple_architecture[0].params.filters == 16


def test_summary_format(simple_architecture: ArchitectureModel) -> None:
    simple_architecture.accuracy = 87.5
    simple_architecture.training_time = 12.3
    lines = simple_architecture.summary().splitlines()
    assert lines[0] == "ARCHITECTURE: simple"
    assert lines[1] == "Accuracy: 87.50%, Training time: 12.3s"
    assert lines[2] == "=" * 60
    assert lines[3] == " 1. [CONV] conv_1: 16 filters, 3x3, stride 1, activation: relu, BN: True"
    assert lines[-2] == "=" * 60
    assert lines[-1] == "STATS: 2 CONV, 2 POOL, 2 DENSE, 8 total"
