"""Parser for `data: <json>` server-sent event frames."""

from typing import Optional, Union

from pydantic import ValidationError

from nomad_gateway.core.utils.logging import get_logger_with_context
from nomad_gateway.infrastructure.llm.schemas import CompletionChunk

logger = get_logger_with_context(module="streaming")

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class _Done:
    """Marker returned for the end-of-stream frame."""


DONE = _Done()


def parse_stream_line(line: Optional[str]) -> Union[CompletionChunk, _Done, None]:
    """
    Parse one line of a streamed completion.

    Returns a CompletionChunk for a valid frame, DONE for the terminator,
    and None for anything to skip: blank lines, comments/keep-alives, and
    frames that fail to parse.
    """
    if line is None or not line.strip():
        return None

    if not line.startswith(DATA_PREFIX):
        return None

    data = line[len(DATA_PREFIX):].strip()
    if data == DONE_SENTINEL:
        return DONE

    try:
        return CompletionChunk.model_validate_json(data)
    except ValidationError as e:
        # A partial network read can corrupt a single frame
        logger.warning(f"Failed to parse streaming chunk: {data[:200]} ({e.error_count()} errors)")
        return None

