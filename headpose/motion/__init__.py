"""
Motion - sensor event models, reference-frame calibration, listener interface
"""
from .models import Attitude, Vector3, RawMotionEvent, MotionSample
from .calibration import FrameCalibrator, MIRROR_TRANSFORM
from .listener import MotionListener

__all__ = [
    'Attitude', 'Vector3', 'RawMotionEvent', 'MotionSample',
    'FrameCalibrator', 'MIRROR_TRANSFORM', 'MotionListener',
]
