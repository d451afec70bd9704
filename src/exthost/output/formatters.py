"""Rich/JSON output selection.

Humans get Rich rendering; ``--json`` gets the serialized ServiceResult.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from exthost.output.renderers import render_result

if TYPE_CHECKING:
    from exthost.services.result import ServiceResult


def format_result(result: ServiceResult, *, json_output: bool = False) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
    """
    if json_output:
        return result.model_dump_json(indent=2)
    return render_result(result)
