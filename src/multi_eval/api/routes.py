"""HTTP routes: stateless phase endpoints and session-scoped run endpoints."""

from fastapi import APIRouter, Depends, Request, Response, status

from multi_eval.api.schemas import (
    ModelEntry,
    MultiJudgeRequest,
    OrchestrateRequest,
    PrimaryRequest,
    SessionMultiJudgeRequest,
    SessionOrchestrateRequest,
    SessionSingleJudgeRequest,
    SingleJudgeRequest,
    SingleRequest,
)
from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.envelope.domain.builder import build_envelope
from multi_eval.envelope.domain.envelope import Envelope, Phase
from multi_eval.ledger.domain.run import Mode, Run
from multi_eval.playground.infrastructure.engine import Engine

router = APIRouter()


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


def _generation(engine: Engine, config: GenerationConfig | None) -> GenerationConfig:
    return config if config is not None else engine.config.generation


@router.get("/models", response_model=list[ModelEntry])
async def list_models(engine: Engine = Depends(get_engine)) -> list[ModelEntry]:
    return [
        ModelEntry(id=e.id, display_name=e.display_name, provider=e.provider)
        for e in engine.catalog()
    ]


@router.post("/primary", response_model=Envelope)
@router.post("/compare", response_model=Envelope)
async def primary(
    body: PrimaryRequest, engine: Engine = Depends(get_engine)
) -> Envelope:
    return await engine.dispatcher.run(
        phase=Phase.PRIMARY,
        model_ids=body.model_ids,
        prompt=body.prompt,
        config=_generation(engine=engine, config=body.config),
    )


@router.post("/single", response_model=Envelope)
async def single(body: SingleRequest, engine: Engine = Depends(get_engine)) -> Envelope:
    return await engine.dispatcher.run(
        phase=Phase.SINGLE,
        model_ids=[body.model_id],
        prompt=body.prompt,
        config=_generation(engine=engine, config=body.config),
    )


@router.post("/judge/multi", response_model=Envelope)
async def judge_multi(
    body: MultiJudgeRequest, engine: Engine = Depends(get_engine)
) -> Envelope:
    return await engine.aggregator.evaluate_multi(
        judge_model_ids=body.judge_model_ids,
        prompt=body.prompt,
        primary_items=body.primary_outputs,
        config=_generation(engine=engine, config=body.config),
    )


@router.post("/judge/single", response_model=Envelope)
async def judge_single(
    body: SingleJudgeRequest, engine: Engine = Depends(get_engine)
) -> Envelope:
    item = await engine.aggregator.evaluate_single(
        evaluator_model_id=body.evaluator_model_id,
        prompt=body.prompt,
        primary_items=body.primary_outputs,
        config=_generation(engine=engine, config=body.config),
    )
    return build_envelope(phase=Phase.JUDGE_SINGLE, items=[item])


@router.post("/orchestrate", response_model=Envelope)
async def orchestrate(
    body: OrchestrateRequest, engine: Engine = Depends(get_engine)
) -> Envelope:
    item = await engine.synthesizer.orchestrate(
        orchestrator_model_id=body.orchestrator_model_id,
        prompt=body.prompt,
        primary_items=body.outputs,
        config=_generation(engine=engine, config=body.config),
        synthesis_instruction=body.orchestration_prompt,
    )
    return build_envelope(phase=Phase.ORCHESTRATE, items=[item])


@router.post("/sessions/{session_id}/compare", response_model=Run)
async def session_compare(
    session_id: str, body: PrimaryRequest, engine: Engine = Depends(get_engine)
) -> Run:
    return await engine.playground(session_id=session_id).compare(
        model_ids=body.model_ids,
        prompt=body.prompt,
        config=_generation(engine=engine, config=body.config),
    )


@router.post("/sessions/{session_id}/multi-judge", response_model=Run)
async def session_multi_judge(
    session_id: str,
    body: SessionMultiJudgeRequest,
    engine: Engine = Depends(get_engine),
) -> Run:
    return await engine.playground(session_id=session_id).multi_judge(
        primary_model_ids=body.primary_model_ids,
        judge_model_ids=body.judge_model_ids,
        prompt=body.prompt,
        config=_generation(engine=engine, config=body.config),
    )


@router.post("/sessions/{session_id}/single-judge", response_model=Run)
async def session_single_judge(
    session_id: str,
    body: SessionSingleJudgeRequest,
    engine: Engine = Depends(get_engine),
) -> Run:
    return await engine.playground(session_id=session_id).single_judge(
        primary_model_ids=body.primary_model_ids,
        evaluator_model_id=body.evaluator_model_id,
        prompt=body.prompt,
        config=_generation(engine=engine, config=body.config),
    )


@router.post("/sessions/{session_id}/chat", response_model=Run)
async def session_chat(
    session_id: str, body: SingleRequest, engine: Engine = Depends(get_engine)
) -> Run:
    return await engine.playground(session_id=session_id).chat(
        model_id=body.model_id,
        prompt=body.prompt,
        config=_generation(engine=engine, config=body.config),
    )


@router.post("/sessions/{session_id}/orchestrate", response_model=Run)
async def session_orchestrate(
    session_id: str,
    body: SessionOrchestrateRequest,
    engine: Engine = Depends(get_engine),
) -> Run:
    return await engine.playground(session_id=session_id).orchestrate(
        orchestrator_model_id=body.orchestrator_model_id,
        config=_generation(engine=engine, config=body.config),
        instruction=body.orchestration_prompt,
        run_id=body.run_id,
    )


@router.get("/sessions/{session_id}/runs/{mode}", response_model=list[Run])
async def session_runs(
    session_id: str, mode: Mode, engine: Engine = Depends(get_engine)
) -> list[Run]:
    return engine.playground(session_id=session_id).runs(mode=mode)


@router.delete(
    "/sessions/{session_id}/runs/{mode}", status_code=status.HTTP_204_NO_CONTENT
)
async def session_clear(
    session_id: str, mode: Mode, engine: Engine = Depends(get_engine)
) -> Response:
    engine.playground(session_id=session_id).clear(mode=mode)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/sessions/{session_id}/runs/{run_id}/cancel", response_model=Run)
async def session_cancel(
    session_id: str, run_id: str, engine: Engine = Depends(get_engine)
) -> Run:
    return engine.playground(session_id=session_id).cancel(run_id=run_id)
