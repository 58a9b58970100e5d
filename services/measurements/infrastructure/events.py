from __future__ import annotations

import json
import logging
import time
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

from isak.composition.assembler import CompositionResult
from isak.composition.measurement import MeasurementSet

from ..application.interfaces import CompositionEventPublisher

LOGGER = logging.getLogger(__name__)


def measurement_event(measurement: MeasurementSet, change: str) -> dict[str, Any]:
    return {
        "type": change,
        "entity": "measurement",
        "data": {
            "id": measurement.measurement_id,
            "patient_id": measurement.patient_id,
            "version": measurement.version,
        },
        "timestamp": int(time.time() * 1000),
    }


def composition_event(result: CompositionResult) -> dict[str, Any]:
    return {
        "type": "update",
        "entity": "calculation",
        "data": {
            "measurement_id": result.measurement_id,
            "measurement_version": result.measurement_version,
            "bmi": result.bmi,
            "structured_weight": result.structured_weight,
        },
        "timestamp": int(time.time() * 1000),
    }


class LoggingCompositionEventPublisher(CompositionEventPublisher):
    def publish_measurement_changed(
        self, measurement: MeasurementSet, *, change: str
    ) -> None:
        LOGGER.info(measurement_event(measurement, change))

    def publish_composition_computed(self, result: CompositionResult) -> None:
        LOGGER.info(composition_event(result))


class RedisCompositionEventPublisher(CompositionEventPublisher):
    def __init__(
        self,
        *,
        host: str,
        port: int,
        db: int,
        channel: str,
        client: Redis | None = None,
    ) -> None:
        self._redis = client or Redis(host=host, port=port, db=db, decode_responses=False)
        self._channel = channel

    def publish_measurement_changed(
        self, measurement: MeasurementSet, *, change: str
    ) -> None:
        self._publish(measurement_event(measurement, change))

    def publish_composition_computed(self, result: CompositionResult) -> None:
        self._publish(composition_event(result))

    def _publish(self, payload: dict[str, Any]) -> None:
        try:
            self._redis.publish(self._channel, json.dumps(payload))
        except RedisError as exc:
            LOGGER.error(
                "Failed to publish %s event for %s: %s",
                payload["entity"],
                payload["data"],
                exc,
            )
