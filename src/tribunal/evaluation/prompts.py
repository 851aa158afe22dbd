"""Judge prompt templates and model response blocks.

Templates are Markdown files shipped in ``tribunal/evaluation/templates``.
Substitution is plain string interpolation of ``{placeholder}`` tokens; the
templates carry no control flow.
"""

import re
from collections.abc import Iterable, Mapping
from functools import cache
from importlib.resources import files

from tribunal.evaluation.types import InteractionRecord, Reliability

_PLACEHOLDER = re.compile(r"\{([a-z_][a-z0-9_]*)\}", re.IGNORECASE)


@cache
def load_template(name: str) -> str:
    """Read a packaged template by name (without the .md suffix).

    Raises:
        FileNotFoundError: If no such template ships with the package
    """
    resource = files("tribunal.evaluation") / "templates" / f"{name}.md"
    if not resource.is_file():
        raise FileNotFoundError(f"Prompt template not found: {name}.md")
    return resource.read_text(encoding="utf-8")


def render_template(template: str, values: Mapping[str, str]) -> str:
    """Replace every ``{key}`` occurrence with its value in a single pass.

    Single pass, so placeholder-looking text inside substituted values (a
    model response quoting ``{issue}``) is left alone. Unknown placeholders
    are kept verbatim.
    """
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def reliability_context(record: InteractionRecord) -> str:
    """The Reliability Status line(s) for one model's block."""
    if not record.reliability.failed:
        return "✅ Completed successfully"

    failure = record.failure
    failure_type = failure.failure_type if failure else (
        "timeout" if record.reliability is Reliability.TIMED_OUT else "error"
    )
    reason = failure.failure_reason if failure and failure.failure_reason else "no reason recorded"
    lines = [f"⚠️ **{failure_type.upper()} FAILURE**: {reason}"]

    if record.reliability is Reliability.TIMED_OUT:
        if failure and failure.time_to_failure is not None:
            seconds = round(failure.time_to_failure / 1000)
            minutes = round(failure.time_to_failure / 60000)
            lines.append(f"- **Time to failure**: {seconds}s ({minutes}min)")
        lines.append("- **Impact**: Model could not complete full workflow within time limit")
    return "\n".join(lines)


def render_model_block(index: int, record: InteractionRecord) -> str:
    """Format one model's response with its metrics and reliability status.

    Failed runs still get a block so the judge can penalize them.
    """
    perf = record.performance
    return f"""### Model {index}: {record.model}

**Performance Metrics:**
- Duration: {perf.duration_ms}ms
- Input Tokens: {perf.input_tokens}
- Output Tokens: {perf.output_tokens}
- Total Tokens: {perf.total_tokens}
- Iterations: {perf.iterations if perf.iterations is not None else 'N/A'}
- Tool Calls: {perf.tool_calls_executed if perf.tool_calls_executed is not None else 'N/A'}
- Cache Read: {perf.cache_read_tokens or 0} tokens
- Cache Creation: {perf.cache_creation_tokens or 0} tokens

**Reliability Status:**
{reliability_context(record)}

**Response:**

{record.output or '(no output)'}

---"""


def render_model_responses(records: Iterable[InteractionRecord]) -> str:
    return "\n\n".join(render_model_block(i, r) for i, r in enumerate(records, start=1))


def format_model_list(models: Iterable[str]) -> str:
    """Models as a quoted, comma separated list: "a", "b"."""
    return ", ".join(f'"{m}"' for m in models)
