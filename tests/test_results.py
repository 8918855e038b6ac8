"""
Tests for training history records and search results.
"""

from evonas.core import ArchitectureModel, EvaluationOutcome, SearchResult, TrainingEpoch


def _epoch(epoch: int, val_accuracy: float, val_loss: float = 0.5) -> TrainingEpoch:
    return TrainingEpoch(epoch, 0.4, val_loss, val_accuracy + 1.0, val_accuracy, 1e-3)


def test_overfitting_flag() -> None:
    assert TrainingEpoch(1, 0.9, 0.5, 90.0, 80.0, 1e-3).is_overfitting
    assert not TrainingEpoch(1, 0.5, 0.9, 80.0, 82.0, 1e-3).is_overfitting
    assert str(TrainingEpoch(3, 0.5, 0.6, 70.0, 65.5, 1e-3)) == (
        "Epoch 3: Train=0.5000(70.00%), Val=0.6000(65.50%), LR=1.00e-03"
    )


def test_result_snapshot_and_history_helpers(simple_architecture: ArchitectureModel) -> None:
    history = [_epoch(1, 40.0), _epoch(2, 60.0, 0.4), _epoch(3, 60.0, 0.3), _epoch(4, 70.0)]
    outcome = EvaluationOutcome(accuracy=70.0, training_time=3.5, parameter_count=2048, history=history)
    result = SearchResult.from_outcome(simple_architecture, outcome, fitness=0.6, signature="sig")

    assert result.architecture is not simple_architecture
    assert result.architecture.name == "simple"
    assert result.architecture.accuracy == 70.0
    assert simple_architecture.accuracy == 0.0
    assert result.best_epoch().epoch == 4
    assert result.learning_speed() == 10.0
    assert [epoch.epoch for epoch in result.recent_epochs(2)] == [3, 4]
    assert not result.had_plateau(window=2)
    assert result.had_plateau(window=10) is False
    assert result.as_record()["layers"] == 8


def test_plateau_detection(simple_architecture: ArchitectureModel) -> None:
    flat = [_epoch(i, 55.0) for i in range(1, 13)]
    result = SearchResult.from_outcome(simple_architecture, EvaluationOutcome(55.0, 1.0, 10, flat))
    assert result.had_plateau()
    assert SearchResult.from_outcome(simple_architecture, EvaluationOutcome(55.0, 1.0, 10)).best_epoch() is None
