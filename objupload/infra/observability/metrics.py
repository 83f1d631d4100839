from prometheus_client import Counter, Histogram, start_http_server

# status: "succeeded" | "failed"
PARTS = Counter(
    "objupload_parts_total",
    "Multipart part uploads by outcome",
    ["status"],
)

PART_BYTES = Counter(
    "objupload_part_bytes_total",
    "Payload bytes of successfully uploaded parts",
)

PART_LATENCY = Histogram(
    "objupload_part_duration_seconds",
    "Part upload latency in seconds",
)

# outcome: "completed" | "aborted"
SESSIONS = Counter(
    "objupload_sessions_total",
    "Multipart upload sessions by terminal state",
    ["outcome"],
)


def serve_metrics(port: int) -> None:
    """Expose the default registry over HTTP on a background thread."""
    start_http_server(port)
