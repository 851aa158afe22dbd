"""Eval dataset loader.

Datasets are JSONL files under the configured datasets directory, one
sample per line. Loading is fail-fast: a single malformed line aborts the
whole load with its position.
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from tribunal.evaluation.types import (
    Complexity,
    DatasetFilter,
    EvalSample,
    SampleMetadata,
    parse_sample_input,
)
from tribunal.foundation.errors import ErrorCode, dataset_error
from tribunal.foundation.serialization import safe_json_loads

logger = logging.getLogger(__name__)


def load_eval_dataset(
    name: str,
    dataset_filter: DatasetFilter | None = None,
    *,
    datasets_dir: str | Path,
) -> list[EvalSample]:
    """Load the samples of `{datasets_dir}/{name}.jsonl` that pass the filter.

    Samples are returned in file order.

    Raises:
        DatasetIntegrityError: If the file is missing or any line is malformed
    """
    path = Path(datasets_dir) / f"{name}.jsonl"
    if not path.exists():
        raise dataset_error(ErrorCode.DATASET_NOT_FOUND, path=str(path))

    samples = []
    for line_num, raw in enumerate(path.read_bytes().splitlines(), start=1):
        if not raw.strip():
            continue
        try:
            data = safe_json_loads(raw.decode("utf-8"))
        except ValueError as e:
            raise dataset_error(
                ErrorCode.DATASET_MALFORMED_LINE, path=path.name, line=line_num, detail=str(e), cause=e
            ) from e
        samples.append(_parse_sample(data, path.name, line_num))

    logger.debug("Loaded %d samples from %s", len(samples), path)
    return filter_samples(samples, dataset_filter)


def load_test_phase(name: str, phase: str, *, datasets_dir: str | Path) -> list[EvalSample]:
    """Load only the samples recorded for one workflow phase."""
    return load_eval_dataset(name, DatasetFilter(phase=phase), datasets_dir=datasets_dir)


def filter_samples(
    samples: Iterable[EvalSample],
    dataset_filter: DatasetFilter | None,
) -> list[EvalSample]:
    """Keep samples matching every criterion of the filter."""
    if dataset_filter is None or dataset_filter.is_empty:
        return list(samples)
    return [s for s in samples if dataset_filter.matches(s)]


def _parse_sample(data: Any, filename: str, line_num: int) -> EvalSample:
    """Parse a single JSON line into an EvalSample."""

    def invalid(field_name: str, detail: str):
        return dataset_error(
            ErrorCode.DATASET_INVALID_FIELD,
            path=filename,
            line=line_num,
            detail=detail,
            field=field_name,
        )

    if not isinstance(data, Mapping):
        raise dataset_error(
            ErrorCode.DATASET_MALFORMED_LINE, path=filename, line=line_num,
            detail="sample must be a JSON object",
        )

    metadata = data.get("metadata")
    if not isinstance(metadata, Mapping):
        raise invalid("metadata", "missing or not an object")

    category = metadata.get("category")
    if not isinstance(category, str) or not category:
        raise invalid("metadata.category", "required string")

    try:
        complexity = Complexity(metadata.get("complexity"))
    except ValueError:
        raise invalid(
            "metadata.complexity",
            f"expected one of low, medium, high, got {metadata.get('complexity')!r}",
        ) from None

    tags = metadata.get("tags")
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise invalid("metadata.tags", "required list of strings")

    for optional in ("phase", "tool"):
        value = metadata.get(optional)
        if value is not None and not isinstance(value, str):
            raise invalid(f"metadata.{optional}", "must be a string when present")

    return EvalSample(
        input=parse_sample_input(data.get("input")),
        ideal=data.get("ideal"),
        metadata=SampleMetadata(
            category=category,
            complexity=complexity,
            tags=frozenset(tags),
            source=str(metadata.get("source", "")),
            phase=metadata.get("phase"),
            tool=metadata.get("tool"),
        ),
        line=line_num,
    )
