from __future__ import annotations


class MeasurementNotFoundError(LookupError):
    def __init__(self, measurement_id: str) -> None:
        super().__init__(f"Measurement {measurement_id} not found")
        self.measurement_id = measurement_id


class CompositionNotFoundError(LookupError):
    def __init__(self, measurement_id: str) -> None:
        super().__init__(f"No composition has been computed for measurement {measurement_id}")
        self.measurement_id = measurement_id


class ConflictError(Exception):
    """The caller's expected version is not the stored one.

    Expected and recoverable: reload the measurement and retry with the
    current version. Nothing is merged.
    """

    def __init__(
        self,
        measurement_id: str,
        expected_version: int,
        current_version: int | None,
    ) -> None:
        super().__init__(
            f"Measurement {measurement_id} is at version {current_version}, "
            f"not {expected_version}; reload and retry"
        )
        self.measurement_id = measurement_id
        self.expected_version = expected_version
        self.current_version = current_version
