from heimdex_contact_sheet.frames.extract import Thumbnail, build_extract_command, extract_frame
from heimdex_contact_sheet.frames.planner import SamplePlan, plan_samples
from heimdex_contact_sheet.frames.pool import DEFAULT_MAX_WORKERS, extract_frames
from heimdex_contact_sheet.frames.probe import check_tools_installed, probe_duration_s

__all__ = [
    "DEFAULT_MAX_WORKERS",
    "SamplePlan",
    "Thumbnail",
    "build_extract_command",
    "check_tools_installed",
    "extract_frame",
    "extract_frames",
    "plan_samples",
    "probe_duration_s",
]
