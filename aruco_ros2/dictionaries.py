from enum import Enum

import cv2


class UnknownDictionaryError(ValueError):
    """Raised when a dictionary name is not one of the predefined ArUco dictionaries."""


class MarkerDictionary(Enum):
    """Predefined marker dictionaries supported by the detector.

    Values are the attribute names of the matching ``cv2.aruco`` constants.
    """

    DICT_4X4_50 = 'DICT_4X4_50'
    DICT_4X4_100 = 'DICT_4X4_100'
    DICT_4X4_250 = 'DICT_4X4_250'
    DICT_4X4_1000 = 'DICT_4X4_1000'
    DICT_5X5_50 = 'DICT_5X5_50'
    DICT_5X5_100 = 'DICT_5X5_100'
    DICT_5X5_250 = 'DICT_5X5_250'
    DICT_5X5_1000 = 'DICT_5X5_1000'
    DICT_6X6_50 = 'DICT_6X6_50'
    DICT_6X6_100 = 'DICT_6X6_100'
    DICT_6X6_250 = 'DICT_6X6_250'
    DICT_6X6_1000 = 'DICT_6X6_1000'
    DICT_7X7_50 = 'DICT_7X7_50'
    DICT_7X7_100 = 'DICT_7X7_100'
    DICT_7X7_250 = 'DICT_7X7_250'
    DICT_7X7_1000 = 'DICT_7X7_1000'
    DICT_ARUCO_ORIGINAL = 'DICT_ARUCO_ORIGINAL'
    DICT_APRILTAG_16h5 = 'DICT_APRILTAG_16h5'
    DICT_APRILTAG_25h9 = 'DICT_APRILTAG_25h9'
    DICT_APRILTAG_36h10 = 'DICT_APRILTAG_36h10'
    DICT_APRILTAG_36h11 = 'DICT_APRILTAG_36h11'

    @classmethod
    def from_name(cls, name: str) -> 'MarkerDictionary':
        """Parse a dictionary name, with or without the ``DICT_`` prefix."""
        name = str(name).strip()
        cv_dict_name = name if name.startswith('DICT_') else f'DICT_{name}'
        try:
            return cls(cv_dict_name)
        except ValueError:
            raise UnknownDictionaryError(f'Unknown ArUco dictionary: {name}') from None

    def get_predefined(self):
        return cv2.aruco.getPredefinedDictionary(getattr(cv2.aruco, self.value))
