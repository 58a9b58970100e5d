from __future__ import annotations

import logging

from fastapi import FastAPI

from isak.engine import CompositionEngine
from isak.reference.adjustment import AdjustmentPolicy
from isak.reference.tables import DEFAULT_REFERENCE_TABLES, ReferenceTables

from .api.routes import create_router
from .application.compute_composition import ComputeCompositionUseCase
from .application.create_measurement import CreateMeasurementUseCase
from .application.get_measurement import GetCompositionUseCase, GetMeasurementUseCase
from .application.interfaces import CompositionEventPublisher
from .application.update_measurement import UpdateMeasurementUseCase
from .application.version_coordinator import MeasurementVersionCoordinator
from .config import MeasurementsConfig, load_config
from .infrastructure.db import create_session_factory
from .infrastructure.events import (
    LoggingCompositionEventPublisher,
    RedisCompositionEventPublisher,
)
from .infrastructure.ids import TokenIdProvider
from .infrastructure.measurements import SqlMeasurementRepository
from .infrastructure.results import SqlCompositionResultRepository

LOGGER = logging.getLogger(__name__)


def _build_event_publisher(cfg: MeasurementsConfig) -> CompositionEventPublisher:
    if cfg.events_backend == "redis":
        return RedisCompositionEventPublisher(
            host=cfg.redis_host,
            port=cfg.redis_port,
            db=cfg.redis_db,
            channel=cfg.redis_channel,
        )
    return LoggingCompositionEventPublisher()


def _load_reference_tables(cfg: MeasurementsConfig) -> ReferenceTables:
    if cfg.reference_tables_path:
        LOGGER.info("Loading reference tables from %s", cfg.reference_tables_path)
        return ReferenceTables.from_json(cfg.reference_tables_path)
    return DEFAULT_REFERENCE_TABLES


def build_app(config: MeasurementsConfig | None = None) -> FastAPI:
    cfg = config or load_config()
    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"message": "pong"}

    orm_session_factory = create_session_factory(cfg.sqlalchemy_dsn)
    measurement_repository = SqlMeasurementRepository(session_factory=orm_session_factory)
    result_repository = SqlCompositionResultRepository(
        session_factory=orm_session_factory
    )
    event_publisher = _build_event_publisher(cfg)
    engine = CompositionEngine(
        tables=_load_reference_tables(cfg),
        policy=AdjustmentPolicy(factor=cfg.adjustment_factor),
    )

    compute_use_case = ComputeCompositionUseCase(
        measurement_repository=measurement_repository,
        result_repository=result_repository,
        engine=engine,
        event_publisher=event_publisher,
    )
    create_use_case = CreateMeasurementUseCase(
        repository=measurement_repository,
        id_provider=TokenIdProvider(prefix=cfg.id_prefix, length=cfg.id_length),
        compute_use_case=compute_use_case,
        event_publisher=event_publisher,
    )
    update_use_case = UpdateMeasurementUseCase(
        coordinator=MeasurementVersionCoordinator(repository=measurement_repository),
        compute_use_case=compute_use_case,
        event_publisher=event_publisher,
    )

    app.include_router(
        create_router(
            create_use_case,
            GetMeasurementUseCase(repository=measurement_repository),
            update_use_case,
            compute_use_case,
            GetCompositionUseCase(
                measurement_repository=measurement_repository,
                result_repository=result_repository,
            ),
        )
    )

    return app


app = build_app()
