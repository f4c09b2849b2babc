"""Foundry VTT integration."""

from hexflower.integrations.foundry.foundry_bridge import (
    FoundryBridge,
    FoundryExportMode,
    FoundryStateExport,
    FoundryEvent,
    FoundryEventType,
    HOOK_NAMES,
    MODULE_ID,
    build_module_api,
)

__all__ = [
    "FoundryBridge",
    "FoundryExportMode",
    "FoundryStateExport",
    "FoundryEvent",
    "FoundryEventType",
    "HOOK_NAMES",
    "MODULE_ID",
    "build_module_api",
]
