"""
Exception types raised by the orbit engine.

Per-satellite failures (``PropagationError`` and ``MalformedSourceError``)
are caught by the fleet propagator and the data source selector; the
remaining types indicate programming errors and are allowed to propagate.
"""


# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}


class OrbitEngineError(Exception):
    """Base class for all orbit engine errors."""


class PropagationError(OrbitEngineError):
    """A single satellite could not be propagated for one frame."""


class KeplerConvergenceError(PropagationError):
    """Newton-Raphson did not solve Kepler's equation within its budget."""

    def __init__(self, mean_anomaly, eccentricity, iterations, residual):
        self.mean_anomaly = mean_anomaly
        self.eccentricity = eccentricity
        self.iterations = iterations
        self.residual = residual
        super().__init__(
            f"Failed to converge after {iterations} iterations "
            f"(M={mean_anomaly:.6f} deg, e={eccentricity:.6f}, residual={residual:.3e})"
        )


class EphemerisError(PropagationError):
    """The SGP4 propagator reported an error or returned an unusable state."""

    def __init__(self, message, error_code=None):
        self.error_code = error_code
        if error_code is not None:
            description = SGP4_ERROR_CODES.get(error_code, f"Unknown error code {error_code}")
            message = f"SGP4 error {error_code}: {description}. {message}"
        super().__init__(message)


class MalformedSourceError(OrbitEngineError):
    """Raw source data (TLE, ephemeris table, manual vector) could not be parsed."""


class FrameMismatchError(OrbitEngineError):
    """A state vector tagged with one frame was passed where another is expected."""

    def __init__(self, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected a state vector in {expected.value}, got {actual.value}")


class ClockNotStartedError(OrbitEngineError):
    """The simulation clock was read before any base instant was set."""
