from __future__ import annotations

from prometheus_client import Counter, Histogram

function_calls = Counter(
    "aletheia_function_calls_total",
    "Function invocations by name and outcome",
    ["function", "outcome"],
)
function_latency = Histogram(
    "aletheia_function_seconds",
    "Function handling latency in seconds",
    ["function"],
)
