"""Generated document descriptors."""

from resume_revisions.artifacts.normalizer import (
    dedupe_output_files,
    normalize_and_dedupe,
    normalize_output_files,
)

__all__ = ["dedupe_output_files", "normalize_and_dedupe", "normalize_output_files"]
