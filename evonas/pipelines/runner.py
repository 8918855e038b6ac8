"""
SDK entry point exposing the `EvoNAS` orchestration class.

The runner merges configuration sources, resolves the data source and
evaluator, runs the selected search strategy and persists the run outputs
under ``experiments/<run_id>/``.  It serves as the backbone for the CLI.
"""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd
from loguru import logger
from omegaconf import OmegaConf

from evonas.core import ArchitectureModel, SearchResult
from evonas.evaluation import BaseEvaluator, DataSource, StaticDataSource, TensorDataSource, TorchEvaluator, TrainerConfig
from evonas.evolution import (
    ArchitectureGenerator,
    BaseSearchController,
    FitnessEvaluator,
    GeneticConfig,
    GeneticSearchController,
    Individual,
    ProgressCallback,
    RandomSearchConfig,
    RandomSearchController,
)
from evonas.exceptions import EvoNASConfigError
from evonas.reporting import generation_stats_to_frame, individuals_to_frame, results_to_frame, write_history
from evonas.utils import ConfigLoader, ExperimentLogger, configure_logging
from evonas.utils.config_reference import (
    CONFIG_SCHEMA,
    GLOBAL_CONFIG_PATH,
    as_dict as _config_schema_dict,
    find_field,
    to_console as _config_schema_console,
    to_markdown as _config_schema_markdown,
    write_markdown as _config_write_markdown,
)
from evonas.utils.profiles import get_profile, list_profiles

STRATEGIES = ("genetic", "random")

DataLike = Union[str, Path, DataSource, int, None]


def _slugify_name(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "run"


@dataclass
class EvoNASResult:
    """Return payload exposed by the SDK."""

    run_id: str
    strategy: str
    best: Optional[Union[SearchResult, Individual]]
    metrics: Dict[str, Any]
    history: pd.DataFrame
    output_dir: Path
    controller: BaseSearchController
    profile: Optional[str] = None

    @property
    def best_architecture(self) -> Optional[ArchitectureModel]:
        return None if self.best is None else self.best.architecture

    @property
    def succeeded(self) -> bool:
        return self.best is not None

    def summary(self) -> str:
        if self.best_architecture is None:
            return f"Run {self.run_id}: no architecture was evaluated successfully."
        return self.best_architecture.summary()


class EvoNAS:
    """Primary interface coordinating configuration, search and run outputs.

    Use :meth:`describe_config` for interactive documentation of all tunable
    parameters and :meth:`available_profiles` for the predefined presets.
    """

    @classmethod
    def describe_config(
        cls,
        section: Optional[str] = None,
        *,
        as_markdown: bool = False,
        to_console: bool = False,
    ) -> Union[str, Dict[str, Dict[str, Dict[str, object]]]]:
        """Return metadata describing EvoNAS configuration keys.

        Parameters
        ----------
        section : str, optional
            When provided, only return information for a single section
            (for example ``"genetic"``). If omitted, all sections are returned.
        as_markdown : bool, default False
            When True, the result is formatted as Markdown text suitable for
            documentation. Otherwise a nested dictionary is returned.
        to_console : bool, default False
            When True, pretty-print the configuration table to stdout. The
            return value is still provided for programmatic use.

        Returns
        -------
        dict or str
            Nested configuration metadata or a markdown string when
            ``as_markdown`` is set.
        """

        if as_markdown:
            markdown = _config_schema_markdown(section=section)
            if to_console:
                print(markdown)
            return markdown

        if to_console:
            print(_config_schema_console(section=section))
        return _config_schema_dict(section)

    @classmethod
    def explain(cls, key: str) -> str:
        """Return a human readable description for a configuration key."""

        field = find_field(key)
        if field is None:
            raise EvoNASConfigError(
                f"Unknown configuration key '{key}'.",
                context={"key": key, "sections": list(CONFIG_SCHEMA)},
            )
        default_repr = "None" if field.default is None else repr(field.default)
        description = field.description or "No description available."
        return f"{field.name} (section={field.section}, type={field.type}, default={default_repr}) -> {description}"

    @classmethod
    def generate_config_docs(cls, path: Union[str, Path] = Path("CONFIG.md")) -> Path:
        """Render the configuration reference to a markdown file."""

        return _config_write_markdown(Path(path))

    @classmethod
    def available_profiles(cls) -> Dict[str, Dict[str, object]]:
        """Return a mapping of available configuration profiles."""

        return list_profiles()

    def __init__(
        self,
        data: DataLike = None,
        evaluator: Optional[BaseEvaluator] = None,
        strategy: Optional[str] = None,
        profile: Optional[str] = None,
        config: Optional[Union[str, Path, Dict[str, Any]]] = None,
        global_config: Optional[Union[str, Path, Dict[str, Any]]] = GLOBAL_CONFIG_PATH,
        run_name: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Create a new EvoNAS orchestrator.

        Parameters
        ----------
        data : str | Path | DataSource | int, optional
            Dataset handle. A path is loaded with :meth:`TensorDataSource.from_file`,
            an integer is treated as the class count for a caller supplied
            evaluator. When omitted, ``data.path`` or ``data.num_classes`` from
            the configuration is used.
        evaluator : BaseEvaluator, optional
            Training backend. Defaults to :class:`TorchEvaluator` over the
            resolved tensor data source.
        strategy : str, optional
            ``"genetic"`` or ``"random"``; overrides ``search.strategy``.
        profile : str, optional
            Optional configuration profile (``"fast"``, ``"balanced"``,
            ``"exhaustive"``) merged before ``config``.
        config : str | Path | dict, optional
            Configuration overrides supplied as a YAML/JSON file or a mapping.
        global_config : str | Path | dict, optional
            Base configuration merged before everything else. Defaults to the
            packaged ``configs/global.yaml``.
        run_name : str, optional
            Slug used to name the run directory. Defaults to the strategy name.
        progress : callable, optional
            Synchronous callback receiving the best result after every trial
            or generation.
        """

        self.profile = profile
        self.progress = progress
        self.stop_event = threading.Event()
        self.run_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        profile_overrides: Dict[str, Any] = {}
        if profile:
            try:
                profile_overrides = get_profile(profile)
            except KeyError as exc:
                raise EvoNASConfigError(str(exc), context={"profile": profile}) from exc

        overrides: Optional[Dict[str, Any]] = None
        if isinstance(config, dict):
            merged_overrides = OmegaConf.merge(OmegaConf.create(profile_overrides), OmegaConf.create(dict(config)))
            overrides = OmegaConf.to_container(merged_overrides, resolve=True)  # type: ignore[assignment]
            config = None
        elif profile_overrides:
            overrides = profile_overrides

        self.config_loader = ConfigLoader(global_config)
        self.config = self.config_loader.load(config=config, overrides=overrides).to_dict()

        self.strategy = (strategy or self.config.get("search", {}).get("strategy") or "genetic").lower()
        if self.strategy not in STRATEGIES:
            raise EvoNASConfigError(
                f"Unknown search strategy '{self.strategy}'. Options: {list(STRATEGIES)}",
                context={"key": "search.strategy", "value": self.strategy},
            )
        self.config.setdefault("search", {})["strategy"] = self.strategy

        logging_cfg = self.config.get("logging", {})
        experiment_cfg = self.config.get("experiment", {})
        configure_logging(logging_cfg.get("level", "INFO"), logging_cfg.get("log_file"))
        self.logger = ExperimentLogger(
            experiment_name=experiment_cfg.get("name", "EvoNAS"),
            tracking_uri=logging_cfg.get("mlflow_uri"),
            enabled=bool(logging_cfg.get("enable_mlflow", False)),
        )

        self.data_source = self._resolve_data_source(data)
        self.evaluator = evaluator or self._default_evaluator()

        self.experiments_dir = Path(experiment_cfg.get("output_dir") or "experiments")
        base_slug = _slugify_name(run_name) if run_name else f"{self.strategy}-search"
        self.run_id = self._allocate_run_id(base_slug)
        self.output_dir = self.experiments_dir / self.run_id
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.controller: Optional[BaseSearchController] = None

    def _resolve_data_source(self, data: DataLike) -> DataSource:
        data_cfg = self.config.get("data", {})
        image_size = int(data_cfg.get("image_size", 64))
        if isinstance(data, DataSource):
            return data
        if isinstance(data, bool):
            raise TypeError("Unsupported data source type: bool")
        if isinstance(data, int):
            return StaticDataSource(num_classes=data, size=image_size)
        if isinstance(data, (str, Path)):
            return TensorDataSource.from_file(data)
        if data is not None:
            raise TypeError(f"Unsupported data source type: {type(data)!r}")
        if data_cfg.get("path"):
            return TensorDataSource.from_file(data_cfg["path"])
        if data_cfg.get("num_classes"):
            return StaticDataSource(num_classes=int(data_cfg["num_classes"]), size=image_size)
        raise EvoNASConfigError(
            "No data source given. Pass `data` or set `data.path` / `data.num_classes`.",
            context={"key": "data.path"},
        )

    def _default_evaluator(self) -> BaseEvaluator:
        if not isinstance(self.data_source, TensorDataSource):
            raise EvoNASConfigError(
                "The default torch evaluator needs a tensor dataset; pass an evaluator or `data.path`.",
                context={"key": "data.path", "data_source": type(self.data_source).__name__},
            )
        trainer_cfg = self.config.get("trainer", {})
        return TorchEvaluator(
            self.data_source,
            TrainerConfig(
                batch_size=int(trainer_cfg.get("batch_size", 32)),
                learning_rate=float(trainer_cfg.get("learning_rate", 1e-3)),
                patience=int(trainer_cfg.get("patience", 20)),
                target_accuracy=float(trainer_cfg.get("target_accuracy", 99.0)),
                device=str(trainer_cfg.get("device", "cpu")),
            ),
        )

    def _allocate_run_id(self, slug: str) -> str:
        self.experiments_dir.mkdir(parents=True, exist_ok=True)
        pattern = re.compile(rf"{re.escape(slug)}_(\d+)$")
        max_index = 0
        for entry in self.experiments_dir.iterdir():
            if entry.is_dir():
                match = pattern.match(entry.name)
                if match:
                    max_index = max(max_index, int(match.group(1)))
        return f"{slug}_{max_index + 1:03d}"

    def _build_controller(self) -> BaseSearchController:
        seed = self.config.get("experiment", {}).get("seed")
        generator = ArchitectureGenerator(image_size=self.data_source.image_size, seed=seed)
        common = dict(
            generator=generator,
            fitness_evaluator=FitnessEvaluator(**self.config.get("fitness", {})),
            experiment_logger=self.logger,
            progress=self.progress,
            stop_event=self.stop_event,
        )
        if self.strategy == "random":
            return RandomSearchController(self.evaluator, RandomSearchConfig(**self.config.get("random", {})), **common)
        return GeneticSearchController(self.evaluator, GeneticConfig(**self.config.get("genetic", {})), **common)

    def cancel(self) -> None:
        """Stop the running search after the current trial or generation."""

        self.stop_event.set()

    def _flat_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"strategy": self.strategy}
        for section in ("genetic" if self.strategy == "genetic" else "random", "fitness", "trainer"):
            for key, value in self.config.get(section, {}).items():
                params[f"{section}.{key}"] = value
        return params

    def run(self) -> EvoNASResult:
        """Execute the configured search and persist its outputs.

        Returns
        -------
        EvoNASResult
            Best result (or ``None`` when every evaluation failed), summary
            metrics, the history table and the run directory.
        """

        controller = self._build_controller()
        self.controller = controller
        with self.logger.start_run(run_name=self.run_id, params=self._flat_params()):
            if isinstance(controller, RandomSearchController):
                best: Optional[Union[SearchResult, Individual]] = controller.search(self.data_source)
                history = results_to_frame(controller.results)
            else:
                best = controller.evolve(self.data_source)
                history = generation_stats_to_frame(controller.history)

            metrics = self._collect_metrics(controller, best)
            self.logger.log_metrics({k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))})
            self._persist_run_outputs(controller, best, metrics, history)

        return EvoNASResult(
            run_id=self.run_id,
            strategy=self.strategy,
            best=best,
            metrics=metrics,
            history=history,
            output_dir=self.output_dir,
            controller=controller,
            profile=self.profile,
        )

    def _collect_metrics(
        self,
        controller: BaseSearchController,
        best: Optional[Union[SearchResult, Individual]],
    ) -> Dict[str, Any]:
        metrics: Dict[str, Any] = {"strategy": self.strategy, "cancelled": controller.cancelled}
        if isinstance(controller, RandomSearchController):
            metrics.update(
                evaluated=len(controller.results),
                failed=len(controller.failures),
                skipped=len(controller.skipped_trials),
            )
        elif isinstance(controller, GeneticSearchController):
            metrics.update(
                generations_run=controller.generations_run,
                stopped_early=controller.stopped_early,
                failed=controller.failure_count,
            )
        if best is not None:
            metrics.update(
                best_accuracy=best.accuracy,
                best_fitness=best.fitness,
                best_training_time=best.training_time,
                best_parameter_count=best.parameter_count,
                best_layers=len(best.architecture),
                best_name=best.architecture.name,
            )
        return metrics

    def _persist_run_outputs(
        self,
        controller: BaseSearchController,
        best: Optional[Union[SearchResult, Individual]],
        metrics: Dict[str, Any],
        history: pd.DataFrame,
    ) -> Dict[str, Path]:
        paths: Dict[str, Path] = {}

        paths["metrics"] = self.output_dir / "metrics.json"
        paths["metrics"].write_text(json.dumps(metrics, indent=2, default=str), encoding="utf-8")

        paths["history"] = write_history(self.output_dir / "history.csv", history)
        if isinstance(controller, GeneticSearchController):
            paths["population"] = write_history(
                self.output_dir / "population.csv",
                individuals_to_frame(controller.population.sorted()),
            )

        paths["best_architecture"] = self.output_dir / "best_architecture.txt"
        if best is None:
            text = "No architecture was evaluated successfully.\n"
        else:
            text = best.architecture.summary() + "\n"
            if isinstance(best, Individual):
                text += f"Lineage: {' -> '.join(best.lineage)}\n"
        paths["best_architecture"].write_text(text, encoding="utf-8")

        paths["config"] = self.output_dir / "config.json"
        paths["config"].write_text(json.dumps(self.config, indent=2, default=str), encoding="utf-8")

        for path in paths.values():
            self.logger.log_artifact(path)
        logger.info("Run outputs written to {}", self.output_dir)
        return paths
