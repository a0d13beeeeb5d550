"""
CSV Serializer - render a recorded session as a labeled CSV document

CSV Format:
Timestamp,AccX,AccY,AccZ,RotX,RotY,RotZ,Pitch,Roll,Yaw,Label
1718000000.125,0.01,-0.02,0.0,0.1,0.0,0.0,0.0,0.0,0.0,walk
...

Floats are written with repr(), the shortest text that parses back to the
same value, so nothing is truncated. Every row carries the session label;
the per-sample label captured at ingest time is ignored.
"""

import csv
import io
import logging
from typing import Iterable, List

from ..errors import SerializationError
from ..motion.models import Attitude, MotionSample, Vector3

logger = logging.getLogger(__name__)

HEADER = [
    'Timestamp', 'AccX', 'AccY', 'AccZ', 'RotX', 'RotY', 'RotZ',
    'Pitch', 'Roll', 'Yaw', 'Label',
]
ENCODING = 'utf-8'


def _row(sample: MotionSample, label: str) -> List[str]:
    values = (
        (sample.timestamp,)
        + sample.acceleration.as_tuple()
        + sample.rotation_rate.as_tuple()
        + sample.attitude.as_tuple()
    )
    return [repr(float(v)) for v in values] + [label]


def serialize(samples: Iterable[MotionSample], label: str) -> bytes:
    """
    Render samples as CSV bytes.

    Args:
        samples: Samples in buffer order (written in the same order)
        label: Session label applied to every row

    Returns:
        UTF-8 encoded CSV document; header only when samples is empty
    """
    out = io.StringIO()
    writer = csv.writer(out, lineterminator='\n')
    writer.writerow(HEADER)
    count = 0
    for sample in samples:
        writer.writerow(_row(sample, label))
        count += 1
    logger.debug(f"Serialized {count} samples (label: '{label}')")
    return out.getvalue().encode(ENCODING)


def parse(data: bytes) -> List[MotionSample]:
    """
    Read a session CSV back into samples.

    Args:
        data: Bytes previously produced by serialize()

    Returns:
        Samples in file order, each carrying its row label

    Raises:
        SerializationError: If the header or a row is malformed
    """
    try:
        text = data.decode(ENCODING)
    except UnicodeDecodeError as e:
        raise SerializationError(f"Session file is not valid UTF-8: {e}") from e

    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if header != HEADER:
        raise SerializationError(f"Unexpected header: {header}")

    samples = []
    for line_no, row in enumerate(reader, start=2):
        if len(row) != len(HEADER):
            raise SerializationError(
                f"Line {line_no}: expected {len(HEADER)} fields, got {len(row)}"
            )
        try:
            t, ax, ay, az, rx, ry, rz, pitch, roll, yaw = (float(v) for v in row[:10])
        except ValueError as e:
            raise SerializationError(f"Line {line_no}: {e}") from e

        samples.append(MotionSample(
            timestamp=t,
            acceleration=Vector3(ax, ay, az),
            rotation_rate=Vector3(rx, ry, rz),
            attitude=Attitude(pitch=pitch, roll=roll, yaw=yaw),
            label=row[10],
        ))
    return samples
