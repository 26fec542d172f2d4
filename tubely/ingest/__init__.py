"""Pipeline stages used by the ingest service: staging, probing, remuxing and publishing."""

from tubely.ingest.probe import Orientation, VideoGeometry, classify_aspect_ratio, probe_video
from tubely.ingest.publish import PublishedObject, Publisher, build_object_key, generate_object_name
from tubely.ingest.remux import remux_faststart
from tubely.ingest.staging import StagedFile, StagingArea, UploadPolicy, stage_upload, thumbnail_policy, video_policy
from tubely.ingest.tools import SubprocessToolRunner, ToolResult, ToolRunner

__all__ = [
    "Orientation",
    "VideoGeometry",
    "classify_aspect_ratio",
    "probe_video",
    "PublishedObject",
    "Publisher",
    "build_object_key",
    "generate_object_name",
    "remux_faststart",
    "StagedFile",
    "StagingArea",
    "UploadPolicy",
    "stage_upload",
    "thumbnail_policy",
    "video_policy",
    "SubprocessToolRunner",
    "ToolResult",
    "ToolRunner",
]
