"""
Structured JSON logging for pipeline observability.

Provides structured logging with trace IDs for correlating logs across
pipeline stages, plus context managers for stage timing and LLM calls.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime

# Context variables for trace correlation
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
stage_var: ContextVar[str | None] = ContextVar("stage", default=None)
task_var: ContextVar[str | None] = ContextVar("task", default=None)


# -----------------------------------------------------------------------------
# JSON Formatter
# -----------------------------------------------------------------------------


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON.

    Output format:
    {"timestamp": "...", "level": "INFO", "message": "...", "trace_id": "...", ...}
    """

    EXTRA_FIELDS = (
        "event",
        "duration_ms",
        "model",
        "provider",
        "call_type",
        "tokens_in",
        "tokens_out",
        "cost_usd",
        "chunk_count",
        "claim_count",
        "unique_claims",
        "evidence_count",
        "batch",
        "failed",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        trace_id = trace_id_var.get()
        if trace_id:
            log_data["trace_id"] = trace_id

        stage = stage_var.get()
        if stage:
            log_data["stage"] = stage

        task = task_var.get()
        if task:
            log_data["task"] = task

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in self.EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data)


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """
    Configure root logging.

    Args:
        json_format: If True, use JSON format. If False, use human-readable format.
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


# -----------------------------------------------------------------------------
# Context Managers
# -----------------------------------------------------------------------------


@contextmanager
def log_stage(stage: str, trace_id: str | None = None):
    """
    Context manager for stage-level logging.

    Logs stage start and end with duration.

    Usage:
        with log_stage("extract_claims", trace_id=trace_id):
            # ... stage logic ...
    """
    if trace_id:
        trace_id_var.set(trace_id)
    token = stage_var.set(stage)

    start_time = time.time()
    logger = logging.getLogger("pipeline")

    logger.info(f"Stage {stage} started", extra={"event": "stage_start"})

    try:
        yield
        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Stage {stage} completed",
            extra={"event": "stage_complete", "duration_ms": duration_ms},
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"Stage {stage} failed: {e}",
            extra={"event": "stage_failed", "duration_ms": duration_ms},
            exc_info=True,
        )
        raise
    finally:
        stage_var.reset(token)


@contextmanager
def log_llm_call(provider: str, model: str, call_type: str):
    """
    Context manager for LLM call instrumentation.

    Logs call end with timing, tokens, and cost estimates.

    Usage:
        with log_llm_call("anthropic", "claude-sonnet-4", "complete") as metrics:
            response = await client.messages.create(...)
            metrics["tokens_in"] = response.usage.input_tokens
            metrics["tokens_out"] = response.usage.output_tokens
    """
    start_time = time.time()
    logger = logging.getLogger("pipeline.llm")
    metrics: dict = {"tokens_in": 0, "tokens_out": 0}

    try:
        yield metrics

        duration_ms = int((time.time() - start_time) * 1000)
        cost_usd = _estimate_llm_cost(provider, model, metrics["tokens_in"], metrics["tokens_out"])

        logger.info(
            f"LLM call completed: {provider}/{model} ({duration_ms}ms, ${cost_usd:.4f})",
            extra={
                "event": "llm_call_complete",
                "provider": provider,
                "model": model,
                "call_type": call_type,
                "duration_ms": duration_ms,
                "tokens_in": metrics["tokens_in"],
                "tokens_out": metrics["tokens_out"],
                "cost_usd": cost_usd,
            },
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"LLM call failed: {provider}/{model} - {e}",
            extra={
                "event": "llm_call_failed",
                "provider": provider,
                "model": model,
                "call_type": call_type,
                "duration_ms": duration_ms,
            },
        )
        raise


# -----------------------------------------------------------------------------
# LLM Cost Estimation
# -----------------------------------------------------------------------------

# Approximate costs per 1M tokens
LLM_COSTS = {
    ("openai", "gpt-4o"): {"input": 2.50, "output": 10.00},
    ("openai", "gpt-4o-mini"): {"input": 0.15, "output": 0.60},
    ("anthropic", "claude-sonnet-4"): {"input": 3.00, "output": 15.00},
    ("anthropic", "claude-haiku-4-5"): {"input": 1.00, "output": 5.00},
    ("anthropic", "claude-opus-4"): {"input": 15.00, "output": 75.00},
}


def _estimate_llm_cost(provider: str, model: str, tokens_in: int, tokens_out: int) -> float:
    """Estimate LLM cost based on token usage."""
    key = (provider.lower(), model.lower())
    costs = LLM_COSTS.get(key)

    # Partial match for dated model names (claude-sonnet-4-20250514)
    if not costs:
        for (p, m), c in LLM_COSTS.items():
            if p == provider.lower() and m in model.lower():
                costs = c
                break

    if not costs:
        costs = {"input": 1.0, "output": 3.0}

    input_cost = (tokens_in / 1_000_000) * costs["input"]
    output_cost = (tokens_out / 1_000_000) * costs["output"]

    return round(input_cost + output_cost, 6)
