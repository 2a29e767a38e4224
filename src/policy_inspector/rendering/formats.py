"""
Output formats supported by the inspection report.
"""

from enum import Enum
from typing import Optional

from ..errors import OutputFormatError


class OutputFormat(Enum):
    STRUCTURED = 'yaml'
    HUMAN_READABLE = 'pretty'

    @classmethod
    def from_option(cls, value: Optional[str]) -> 'OutputFormat':
        """
        Map the value of the ``--output`` option to a format.

        No value selects the human readable report; unknown values raise
        OutputFormatError instead of falling back to a default.
        """
        if value is None:
            return cls.HUMAN_READABLE
        for output_format in cls:
            if output_format.value == value:
                return output_format
        raise OutputFormatError(value)
