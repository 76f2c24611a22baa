"""Status values carried by read results and their JSON payloads."""

RESULT_OK = "ok"
RESULT_EMPTY = "empty"
RESULT_NOT_FOUND = "not_found"
RESULT_FAILED = "failed"
