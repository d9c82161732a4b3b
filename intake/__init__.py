"""
Artist submission intake package.

Exports the pieces a web layer needs to accept a submission.
"""

from intake.config import IntakeSettings, load_settings
from intake.runner import IntakePipeline, IntakeStage, build_pipeline
from intake.schema import IntakeResult, SubmissionRecord, SubmissionStatus, UploadedFile

__all__ = [
    "IntakeSettings",
    "load_settings",
    "IntakePipeline",
    "IntakeStage",
    "build_pipeline",
    "IntakeResult",
    "SubmissionRecord",
    "SubmissionStatus",
    "UploadedFile",
]
