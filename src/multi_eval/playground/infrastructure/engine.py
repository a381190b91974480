"""Engine — wires dispatch, evaluation, synthesis and per-session playgrounds."""

import threading
from typing import Protocol

from multi_eval.config.domain.config import EngineConfig
from multi_eval.dispatch.application.dispatcher import Dispatcher
from multi_eval.dispatch.domain.observer import DispatchObserver
from multi_eval.dispatch.infrastructure.observer import StructlogDispatchObserver
from multi_eval.evaluation.application.aggregator import EvaluationAggregator
from multi_eval.evaluation.domain.observer import EvaluationObserver
from multi_eval.evaluation.infrastructure.observer import StructlogEvaluationObserver
from multi_eval.ledger.infrastructure.memory import SessionLedgers
from multi_eval.playground.application.playground import Playground
from multi_eval.playground.domain.observer import PlaygroundObserver
from multi_eval.playground.infrastructure.observer import StructlogPlaygroundObserver
from multi_eval.provider.domain.adapter import ProviderAdapter
from multi_eval.provider.infrastructure.observer import StructlogProviderObserver
from multi_eval.provider.infrastructure.registry import CatalogEntry, ModelRegistry
from multi_eval.synthesis.application.synthesizer import Synthesizer
from multi_eval.synthesis.domain.observer import SynthesisObserver
from multi_eval.synthesis.infrastructure.observer import StructlogSynthesisObserver


class ModelCatalog(Protocol):
    """A resolver that can also list what it resolves."""

    def resolve(self, model_id: str) -> ProviderAdapter: ...

    def catalog(self) -> list[CatalogEntry]: ...


class Engine:
    """One configured engine instance shared by every request.

    The dispatcher, aggregator and synthesizer are stateless and shared.
    Each session gets its own Playground, bound to that session's ledger,
    so runs and in-flight tasks never leak between sessions.
    """

    def __init__(
        self,
        config: EngineConfig,
        models: ModelCatalog,
        dispatch_observer: DispatchObserver,
        evaluation_observer: EvaluationObserver,
        synthesis_observer: SynthesisObserver,
        playground_observer: PlaygroundObserver,
    ) -> None:
        self._config = config
        self._models = models
        self._playground_observer = playground_observer
        self._dispatcher = Dispatcher(
            resolver=models,
            observer=dispatch_observer,
            timeout_seconds=config.dispatch.timeout_seconds,
            max_concurrent=config.dispatch.max_concurrent,
        )
        self._aggregator = EvaluationAggregator(
            dispatcher=self._dispatcher, observer=evaluation_observer
        )
        self._synthesizer = Synthesizer(
            dispatcher=self._dispatcher,
            observer=synthesis_observer,
            config=config.synthesis,
        )
        self._sessions = SessionLedgers()
        self._playgrounds: dict[str, Playground] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        dispatch_observer: DispatchObserver | None = None,
    ) -> "Engine":
        """Build an engine backed by real adapters and structlog observers."""
        registry = ModelRegistry.from_config(
            models=config.models, observer=StructlogProviderObserver()
        )
        return cls(
            config=config,
            models=registry,
            dispatch_observer=dispatch_observer or StructlogDispatchObserver(),
            evaluation_observer=StructlogEvaluationObserver(),
            synthesis_observer=StructlogSynthesisObserver(),
            playground_observer=StructlogPlaygroundObserver(),
        )

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def aggregator(self) -> EvaluationAggregator:
        return self._aggregator

    @property
    def synthesizer(self) -> Synthesizer:
        return self._synthesizer

    def catalog(self) -> list[CatalogEntry]:
        return self._models.catalog()

    def playground(self, session_id: str) -> Playground:
        with self._lock:
            playground = self._playgrounds.get(session_id)
            if playground is None:
                playground = Playground(
                    dispatcher=self._dispatcher,
                    aggregator=self._aggregator,
                    synthesizer=self._synthesizer,
                    ledger=self._sessions.get(session_id=session_id),
                    observer=self._playground_observer,
                )
                self._playgrounds[session_id] = playground
            return playground
