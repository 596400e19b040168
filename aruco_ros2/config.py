from dataclasses import dataclass
from enum import Enum

from aruco_ros2.dictionaries import MarkerDictionary

ROOT_FRAME = 'map'
MARKER_FRAME_PREFIX = 'aruco_marker_'


def marker_frame_name(marker_id: int) -> str:
    return f'{MARKER_FRAME_PREFIX}{int(marker_id)}'


class FailurePolicy(Enum):
    """What a failing marker does to the rest of its frame."""

    SKIP_MARKER = 'skip_marker'
    ABORT_FRAME = 'abort_frame'

    @classmethod
    def from_name(cls, name: str) -> 'FailurePolicy':
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            choices = ', '.join(p.value for p in cls)
            raise ValueError(f'Unknown failure policy: {name} (expected one of {choices})') from None


@dataclass(frozen=True)
class DetectorConfig:
    """Startup configuration of the detection node.

    ``dictionary`` and ``failure_policy`` accept their string names and are
    parsed on construction, so an invalid value fails before the node
    subscribes to anything.
    """

    marker_size: float = 0.1
    camera_frame: str = 'camera_rgb_optical_frame'
    image_topic: str = '/camera/color/image_raw'
    camera_info_topic: str = '/camera/color/camera_info'
    dictionary: MarkerDictionary = MarkerDictionary.DICT_4X4_1000
    failure_policy: FailurePolicy = FailurePolicy.SKIP_MARKER
    transform_timeout: float = 0.0  # seconds
    draw_axes: bool = True

    def __post_init__(self):
        if not isinstance(self.dictionary, MarkerDictionary):
            object.__setattr__(self, 'dictionary', MarkerDictionary.from_name(self.dictionary))
        if not isinstance(self.failure_policy, FailurePolicy):
            object.__setattr__(self, 'failure_policy', FailurePolicy.from_name(self.failure_policy))
        object.__setattr__(self, 'marker_size', float(self.marker_size))
        object.__setattr__(self, 'transform_timeout', float(self.transform_timeout))
        if self.marker_size <= 0.0:
            raise ValueError('marker_size must be positive')
        if self.transform_timeout < 0.0:
            raise ValueError('transform_timeout must not be negative')
        if not self.camera_frame:
            raise ValueError('camera_frame must not be empty')

    @property
    def axis_length(self) -> float:
        return self.marker_size * 0.5
