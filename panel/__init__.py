"""Display resolution and layout for the camera-stats panel."""

from .display import resolve_display
from .form_state import FormState, apply_edit, build_form, reset_to_auto
from .layout import build_layout, compute_geometry, panel_metrics
from .models import DEFAULT_FORM, DisplayForm, DisplayRecord, LayoutGeometry, PanelLayout, Stat

__all__ = [
    "DEFAULT_FORM",
    "DisplayForm",
    "DisplayRecord",
    "FormState",
    "LayoutGeometry",
    "PanelLayout",
    "Stat",
    "apply_edit",
    "build_form",
    "build_layout",
    "compute_geometry",
    "panel_metrics",
    "reset_to_auto",
    "resolve_display",
]
