"""
Constants
Centralised storage for host names, telemetry keys and corrective hints.
"""
HOST_EXCEL = "Excel"

PROGRESS_FIXING_ERRORS = "Fixing code errors..."

# Corrective hints fed back to the oracle after a degenerate fix
HINT_RETURN_COMPLETE_SNIPPET = (
    "You should send back the whole snippet without any explanation."
)
HINT_MORE_COMPILE_ERRORS = "The previous fix introduced more compile errors."

# Telemetry keys (merged into the caller's measurement/property maps)
MEASUREMENT_ATTEMPT_COUNT = "self-reflection-attempt-count"
MEASUREMENT_EXECUTION_TIME_SEC = "self-reflection-execution-time-in-total-sec"
PROPERTY_ATTEMPT_SUCCEEDED = "self-reflection-attempt-succeeded"
