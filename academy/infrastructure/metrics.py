from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# HTTP
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Progress sync
progress_writes_total = Counter(
    'progress_writes_total',
    'ModuleProgress write operations requested',
    ['operation']
)
check_outcomes_total = Counter(
    'check_outcomes_total',
    'Comprehension check submissions by outcome',
    ['status']
)

# Tutor
tutor_requests_total = Counter(
    'tutor_requests_total',
    'Tutor chat requests',
    ['status']
)

def metrics_endpoint():
    """Prometheus exposition"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
