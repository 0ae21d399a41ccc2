"""Built-in detectors, one module per guideline area.

Every detector has the signature
``detector(source_file, context) -> Iterable[DetectorHit]`` and is pure: it
reads the file's tree and the shared context and returns hits.
"""

from .base import Detector, DetectorHit

__all__ = ["Detector", "DetectorHit"]
