"""
Tools that read the debugging context captured from the inspected page.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from ..prompt import CapturedError
from ..tools import Tool, tool

ErrorSource = Callable[[], Sequence[CapturedError]]
SDKConfigSource = Callable[[], Optional[Mapping[str, Any]]]


def _analyze_error(error_id: int, errors: Optional[ErrorSource] = None) -> Dict[str, Any]:
    captured = list(errors()) if errors is not None else []
    error = next((e for e in captured if e.id == error_id), None)
    if error is None:
        return {"success": True, "notFound": True}
    return {
        "success": True,
        "error": {
            "message": error.message,
            "type": error.type,
            "filename": error.filename,
            "lineno": error.lineno,
            "stack": error.stack,
        },
        "analysis": f'Error "{error.message}" occurred at {error.filename}:{error.lineno}',
    }


CAMPAIGN_KEYS = (
    "backInStockAlerts",
    "browseAbandonments",
    "cartAbandonments",
    "customTriggerCampaigns",
    "priceDropAlerts",
)


def _get_subscription_details(
    include_settings: bool = True,
    include_campaigns: bool = True,
    sdk_config: Optional[SDKConfigSource] = None,
) -> Dict[str, Any]:
    config = sdk_config() if sdk_config is not None else None
    if not config:
        return {
            "success": True,
            "available": False,
            "error": "Push notification SDK not detected on current page",
        }
    data = dict(config)
    if not include_settings:
        data.pop("siteSettings", None)
    if not include_campaigns:
        for key in CAMPAIGN_KEYS:
            data.pop(key, None)
    return {"success": True, "available": True, "data": data}


def analyze_error_tool(errors: ErrorSource) -> Tool:
    """Build ``analyze_error`` reading captured errors from ``errors()``."""
    return tool(
        name="analyze_error",
        description="Analyze a console error and provide debugging suggestions",
        param_metadata={"error_id": {"description": "ID of the captured error to analyze"}},
        injected_kwargs={"errors": errors},
    )(_analyze_error)


def subscription_details_tool(sdk_config: SDKConfigSource) -> Tool:
    """Build ``get_subscription_details`` reading the detected SDK configuration."""
    return tool(
        name="get_subscription_details",
        description=(
            "Get push notification subscription and configuration details from the current "
            "webpage. Returns campaign info, site settings, segments, and more."
        ),
        param_metadata={
            "include_settings": {
                "description": "Whether to include site settings in the response"
            },
            "include_campaigns": {
                "description": "Whether to include campaign details in the response"
            },
        },
        injected_kwargs={"sdk_config": sdk_config},
    )(_get_subscription_details)


__all__ = [
    "ErrorSource",
    "SDKConfigSource",
    "analyze_error_tool",
    "subscription_details_tool",
]
