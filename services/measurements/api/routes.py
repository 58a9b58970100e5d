from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from isak.composition.errors import (
    ComputationError,
    DegenerateComputationError,
    PreconditionError,
)
from isak.composition.measurement import MeasurementSet

from ..application.compute_composition import ComputeCompositionUseCase
from ..application.create_measurement import CreateMeasurementUseCase
from ..application.dto import (
    ComputeCompositionCommand,
    CreateMeasurementCommand,
    UpdateMeasurementCommand,
)
from ..application.get_measurement import GetCompositionUseCase, GetMeasurementUseCase
from ..application.update_measurement import UpdateMeasurementUseCase
from ..domain.errors import ConflictError
from ..domain.measurement import MeasurementOutcome


class MeasurementReadings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    weight: float | None = Field(default=None, gt=0)
    height: float | None = Field(default=None, gt=0)
    seated_height: float | None = None

    biacromial: float | None = None
    thorax_transverse: float | None = None
    thorax_anteroposterior: float | None = None
    biiliocristal: float | None = None
    humeral: float | None = None
    femoral: float | None = None

    head: float | None = None
    relaxed_arm: float | None = None
    flexed_arm: float | None = None
    forearm: float | None = None
    thorax_circ: float | None = None
    waist: float | None = None
    hip: float | None = None
    thigh_superior: float | None = None
    thigh_medial: float | None = None
    calf: float | None = None

    triceps: float | None = Field(default=None, ge=0)
    subscapular: float | None = Field(default=None, ge=0)
    supraspinal: float | None = Field(default=None, ge=0)
    abdominal: float | None = Field(default=None, ge=0)
    thigh_skinfold: float | None = Field(default=None, ge=0)
    calf_skinfold: float | None = Field(default=None, ge=0)


class CreateMeasurementRequest(MeasurementReadings):
    patient_id: str = Field(min_length=1)
    measured_at: datetime | None = None
    notes: str | None = None
    sex: str | None = None
    age: float | None = Field(default=None, gt=0)


class UpdateMeasurementRequest(MeasurementReadings):
    version: int = Field(ge=1)
    measured_at: datetime | None = None
    notes: str | None = None
    sex: str | None = None
    age: float | None = Field(default=None, gt=0)


class ComputeCompositionRequest(BaseModel):
    sex: str | None = None
    previous_measurement_id: str | None = None
    age: float | None = Field(default=None, gt=0)


class MeasurementResponse(BaseModel):
    measurement_id: str
    patient_id: str
    version: int
    measured_at: str | None
    notes: str | None
    readings: Dict[str, float]

    @classmethod
    def from_domain(cls, measurement: MeasurementSet) -> "MeasurementResponse":
        measured_at = None
        if measurement.measured_at is not None:
            measured_at = measurement.measured_at.isoformat().replace("+00:00", "Z")
        return cls(
            measurement_id=measurement.measurement_id,
            patient_id=measurement.patient_id,
            version=measurement.version,
            measured_at=measured_at,
            notes=measurement.notes,
            readings=measurement.readings(),
        )


class ComputationErrorResponse(BaseModel):
    kind: str
    message: str
    field: str | None = None

    @classmethod
    def from_error(cls, error: ComputationError) -> "ComputationErrorResponse":
        if isinstance(error, PreconditionError):
            return cls(kind="precondition", message=str(error), field=error.field)
        if isinstance(error, DegenerateComputationError):
            return cls(kind="degenerate", message=str(error), field=error.quantity)
        return cls(kind="computation", message=str(error))


class MeasurementOutcomeResponse(BaseModel):
    measurement: MeasurementResponse
    composition: Dict[str, Any] | None = None
    composition_error: ComputationErrorResponse | None = None

    @classmethod
    def from_domain(cls, outcome: MeasurementOutcome) -> "MeasurementOutcomeResponse":
        return cls(
            measurement=MeasurementResponse.from_domain(outcome.measurement),
            composition=outcome.composition.to_dict() if outcome.composition else None,
            composition_error=(
                ComputationErrorResponse.from_error(outcome.composition_error)
                if outcome.composition_error
                else None
            ),
        )


class CompositionResponse(BaseModel):
    stale: bool
    composition: Dict[str, Any]


_PATCH_EXCLUDE = {"version", "sex", "age"}


def create_router(
    create_measurement_use_case: CreateMeasurementUseCase,
    get_measurement_use_case: GetMeasurementUseCase,
    update_measurement_use_case: UpdateMeasurementUseCase,
    compute_composition_use_case: ComputeCompositionUseCase,
    get_composition_use_case: GetCompositionUseCase,
) -> APIRouter:
    router = APIRouter()
    measurements_router = APIRouter(prefix="/v1/measurements", tags=["measurements"])

    @measurements_router.post(
        "", response_model=MeasurementOutcomeResponse, status_code=201
    )
    async def create_measurement_endpoint(payload: CreateMeasurementRequest):
        readings = payload.model_dump(
            exclude_unset=True,
            exclude={"patient_id", "measured_at", "notes", "sex", "age"},
        )
        command = CreateMeasurementCommand(
            patient_id=payload.patient_id,
            readings=readings,
            measured_at=payload.measured_at,
            notes=payload.notes,
            sex=payload.sex,
            age=payload.age,
        )
        try:
            outcome = create_measurement_use_case.execute(command)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return MeasurementOutcomeResponse.from_domain(outcome)

    @measurements_router.get("/{measurement_id}", response_model=MeasurementResponse)
    async def get_measurement_endpoint(measurement_id: str):
        try:
            measurement = get_measurement_use_case.execute(measurement_id)
        except LookupError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return MeasurementResponse.from_domain(measurement)

    @measurements_router.patch(
        "/{measurement_id}", response_model=MeasurementOutcomeResponse
    )
    async def update_measurement_endpoint(
        measurement_id: str, payload: UpdateMeasurementRequest
    ):
        command = UpdateMeasurementCommand(
            measurement_id=measurement_id,
            expected_version=payload.version,
            patch=payload.model_dump(exclude_unset=True, exclude=_PATCH_EXCLUDE),
            sex=payload.sex,
            age=payload.age,
        )
        try:
            outcome = update_measurement_use_case.execute(command)
        except ConflictError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "message": str(exc),
                    "expected_version": exc.expected_version,
                    "current_version": exc.current_version,
                },
            ) from exc
        except LookupError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return MeasurementOutcomeResponse.from_domain(outcome)

    @measurements_router.post(
        "/{measurement_id}/composition", response_model=CompositionResponse
    )
    async def compute_composition_endpoint(
        measurement_id: str, payload: ComputeCompositionRequest
    ):
        command = ComputeCompositionCommand(
            measurement_id=measurement_id,
            sex=payload.sex,
            previous_measurement_id=payload.previous_measurement_id,
            age=payload.age,
        )
        try:
            view = compute_composition_use_case.execute(command)
        except LookupError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ComputationError as exc:
            raise HTTPException(
                status_code=422,
                detail=ComputationErrorResponse.from_error(exc).model_dump(),
            ) from exc
        return CompositionResponse(stale=view.stale, composition=view.result.to_dict())

    @measurements_router.get(
        "/{measurement_id}/composition", response_model=CompositionResponse
    )
    async def get_composition_endpoint(measurement_id: str):
        try:
            view = get_composition_use_case.execute(measurement_id)
        except LookupError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return CompositionResponse(stale=view.stale, composition=view.result.to_dict())

    router.include_router(measurements_router)

    return router
