from __future__ import annotations

import threading

from isak.composition.measurement import MeasurementSet

from services.measurements.application.version_coordinator import (
    MeasurementVersionCoordinator,
)
from services.measurements.domain.errors import ConflictError
from services.measurements.infrastructure.measurements import SqlMeasurementRepository
from services.measurements.infrastructure.memory import InMemoryMeasurementRepository

WRITERS = 4
WRITES_PER_WRITER = 5


def _run_writers(repository, measurement_id: str) -> tuple[list[int], int]:
    coordinator = MeasurementVersionCoordinator(repository=repository)
    committed: list[int] = []
    conflicts = [0]
    guard = threading.Lock()
    barrier = threading.Barrier(WRITERS)
    errors: list[Exception] = []

    def writer(index: int) -> None:
        barrier.wait()
        done = 0
        try:
            while done < WRITES_PER_WRITER:
                current = repository.get(measurement_id)
                try:
                    versioned = coordinator.update(
                        measurement_id,
                        current.version,
                        {"notes": f"writer {index} write {done}"},
                    )
                except ConflictError:
                    with guard:
                        conflicts[0] += 1
                    continue
                with guard:
                    committed.append(versioned.version)
                done += 1
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(WRITERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    assert not errors
    return committed, conflicts[0]


def _assert_contiguous(committed: list[int]) -> None:
    total = WRITERS * WRITES_PER_WRITER
    assert len(committed) == total
    assert sorted(committed) == list(range(2, total + 2))


def test_in_memory_writers_never_skip_or_repeat_versions():
    repository = InMemoryMeasurementRepository()
    repository.create(MeasurementSet(measurement_id="msr_hot", patient_id="pat_1"))

    committed, _ = _run_writers(repository, "msr_hot")

    _assert_contiguous(committed)
    assert repository.get("msr_hot").version == WRITERS * WRITES_PER_WRITER + 1


def test_sqlite_writers_never_skip_or_repeat_versions(session_factory):
    repository = SqlMeasurementRepository(session_factory=session_factory)
    repository.create(MeasurementSet(measurement_id="msr_hot", patient_id="pat_1"))

    committed, _ = _run_writers(repository, "msr_hot")

    _assert_contiguous(committed)
    assert repository.get("msr_hot").version == WRITERS * WRITES_PER_WRITER + 1
