"""
Helpers shared by the gateway services.
"""

from typing import Any, Dict, List

from dbef.data.models import Page


def not_found() -> Dict[str, Any]:
    return {"status": "not_found"}


def results_of(data: Any) -> List[Dict[str, Any]]:
    """Unwrap a list endpoint response, paginated or not."""
    if data is None:
        return []
    if isinstance(data, dict):
        return Page[Dict[str, Any]].model_validate(data).results
    return list(data)
