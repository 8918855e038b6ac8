"""
Tests for crossover, mutation and repair.
"""

import random

from evonas.core import ArchitectureModel, LayerRole, LayerSpec
from evonas.evolution import ArchitectureGenerator, GeneticOperators, MutationKind


def _operators(seed: int = 0) -> GeneticOperators:
    return GeneticOperators(ArchitectureGenerator(rng=random.Random(seed)))


def _snapshot(architecture: ArchitectureModel):
    return [(layer, id(layer)) for layer in architecture.layers]


def test_crossover_at_point_three_swaps_tails(
    simple_architecture: ArchitectureModel, other_architecture: ArchitectureModel
) -> None:
    child_1, child_2 = _operators().crossover(simple_architecture, other_architecture, point=3)
    assert len(child_1) == 8
    assert len(child_2) == 8
    assert child_1.layers[:3] == simple_architecture.layers[:3]
    assert child_1.layers[3:] == other_architecture.layers[3:]
    assert child_2.layers[:3] == other_architecture.layers[:3]
    assert child_2.layers[3:] == simple_architecture.layers[3:]
    assert child_1.name == "simple_x_other"
    assert child_1.validate() and child_2.validate()


def test_crossover_never_shares_layers_with_parents(
    simple_architecture: ArchitectureModel, other_architecture: ArchitectureModel
) -> None:
    before_a, before_b = _snapshot(simple_architecture), _snapshot(other_architecture)
    child_1, child_2 = _operators().crossover(simple_architecture, other_architecture)
    parent_ids = {id(layer) for layer in simple_architecture} | {id(layer) for layer in other_architecture}
    assert not parent_ids & {id(layer) for layer in child_1}
    assert not parent_ids & {id(layer) for layer in child_2}
    assert not {id(layer) for layer in child_1} & {id(layer) for layer in child_2}
    assert _snapshot(simple_architecture) == before_a
    assert _snapshot(other_architecture) == before_b


def test_crossover_point_range(simple_architecture: ArchitectureModel, other_architecture: ArchitectureModel) -> None:
    operators = _operators(5)
    points = {operators.crossover_point(simple_architecture, other_architecture) for _ in range(200)}
    assert points <= set(range(1, 7))
    tiny = ArchitectureModel("tiny", [LayerSpec.conv("c", 8), LayerSpec.output("o", 2)])
    assert operators.crossover_point(tiny, simple_architecture) == 1


def test_every_mutation_leaves_the_parent_untouched(simple_architecture: ArchitectureModel) -> None:
    operators = _operators(11)
    before = _snapshot(simple_architecture)
    for kind in MutationKind:
        for _ in range(10):
            child = operators.mutate(simple_architecture, kind)
            assert child is not simple_architecture
            assert child.name == "simple_mut"
            assert child.accuracy == 0.0
            assert not {id(layer) for layer in child} & {id(layer) for layer, _ in before}
    assert _snapshot(simple_architecture) == before


def test_insert_conv_lands_before_flatten(simple_architecture: ArchitectureModel) -> None:
    operators = _operators(2)
    for _ in range(20):
        child = operators.mutate(simple_architecture, MutationKind.INSERT_CONV)
        assert len(child) == 9
        assert child.layer_counts()[LayerRole.CONV] == 3
        assert child.index_of_first(LayerRole.FLATTEN) == 5
        assert child.validate()


def test_remove_layer_never_drops_first_or_last(simple_architecture: ArchitectureModel) -> None:
    operators = _operators(4)
    for _ in range(20):
        child = operators.mutate(simple_architecture, MutationKind.REMOVE_LAYER)
        assert child[0] == simple_architecture[0]
        assert child[-1].role is LayerRole.OUTPUT


def test_perturb_keeps_layers_in_range(simple_architecture: ArchitectureModel) -> None:
    operators = _operators(8)
    for _ in range(30):
        child = operators.mutate(simple_architecture, MutationKind.PERTURB)
        assert len(child) == len(simple_architecture)
        assert all(layer.is_valid() for layer in child)
        assert [layer.role for layer in child] == [layer.role for layer in simple_architecture]


def test_repair_restores_output_and_flatten() -> None:
    broken = ArchitectureModel(
        "broken", [LayerSpec.conv("c", 8), LayerSpec.pool("p"), LayerSpec.dense("d1", 64), LayerSpec.dense("d2", 7)]
    )
    repaired = _operators().repair(broken)
    assert repaired is broken
    assert [layer.role for layer in repaired] == [
        LayerRole.CONV,
        LayerRole.POOL,
        LayerRole.FLATTEN,
        LayerRole.DENSE,
        LayerRole.OUTPUT,
    ]
    assert repaired[-1].params.num_classes == 7
    assert repaired.validate()


def test_repair_inserts_missing_conv() -> None:
    no_conv = ArchitectureModel("no_conv", [LayerSpec.pool("p"), LayerSpec.flatten(), LayerSpec.output("o", 3)])
    repaired = _operators().repair(no_conv)
    assert repaired[1].role is LayerRole.CONV
    assert repaired.validate()


def test_repair_without_dense_leaves_output_missing() -> None:
    headless = ArchitectureModel("headless", [LayerSpec.conv("c", 8), LayerSpec.pool("p"), LayerSpec.flatten()])
    repaired = _operators().repair(headless)
    assert not repaired.has_role(LayerRole.OUTPUT)
    assert len(repaired) == 3


def test_repair_is_idempotent(simple_architecture: ArchitectureModel) -> None:
    operators = _operators(21)
    for _ in range(40):
        child = operators.mutate(simple_architecture)
        once = list(child.layers)
        operators.repair(child)
        assert child.layers == once

    broken = ArchitectureModel("broken", [LayerSpec.conv("c", 8), LayerSpec.dense("d", 12)])
    operators.repair(broken)
    once = list(broken.layers)
    operators.repair(broken)
    assert broken.layers == once
